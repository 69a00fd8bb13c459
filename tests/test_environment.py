import pytest

from shimmer import Environment, Interpreter, Token


def name(lexeme, line=1):
    return Token("IDENTIFIER", lexeme, line, 1)


def test_define_and_get():
    environment = Environment()
    environment.define(name("a"), 1.0)
    assert environment.get(name("a")) == 1.0


def test_redefinition_in_same_scope_fails():
    environment = Environment()
    environment.define(name("a"), 1.0)
    with pytest.raises(Interpreter.Error) as excinfo:
        environment.define(name("a", line=4), 2.0)
    assert excinfo.value.message == "Variable 'a' already defined in this scope."
    assert excinfo.value.token.line == 4


def test_child_may_shadow_parent():
    parent = Environment()
    parent.define(name("a"), 1.0)
    child = Environment(parent)
    child.define(name("a"), 2.0)
    assert child.get(name("a")) == 2.0
    assert parent.get(name("a")) == 1.0


def test_get_and_assign_walk_outward():
    parent = Environment()
    parent.define(name("a"), 1.0)
    child = Environment(Environment(parent))
    child.assign(name("a"), 5.0)
    assert parent.get(name("a")) == 5.0
    assert child.get(name("a")) == 5.0


@pytest.mark.parametrize("operation", [
    lambda env: env.get(name("missing")),
    lambda env: env.assign(name("missing"), 1.0),
    lambda env: env.get_at(0, name("missing")),
    lambda env: env.assign_at(0, name("missing"), 1.0),
])
def test_undefined_variable(operation):
    with pytest.raises(Interpreter.Error, match="Undefined variable 'missing'."):
        operation(Environment(Environment()))


def test_get_at_and_assign_at_jump_exactly():
    grandparent = Environment()
    grandparent.define(name("a"), "outer")
    parent = Environment(grandparent)
    parent.define(name("a"), "middle")
    child = Environment(parent)

    assert child.get_at(1, name("a")) == "middle"
    assert child.get_at(2, name("a")) == "outer"

    child.assign_at(2, name("a"), "changed")
    assert grandparent.get(name("a")) == "changed"
    assert parent.get(name("a")) == "middle"


def test_distance_past_the_chain_is_an_internal_fault():
    with pytest.raises(ValueError):
        Environment(Environment()).get_at(2, name("a"))


def test_closures_share_an_ancestor():
    shared = Environment()
    shared.define(name("n"), 0.0)
    first, second = Environment(shared), Environment(shared)
    first.assign_at(1, name("n"), 1.0)
    assert second.get_at(1, name("n")) == 1.0
