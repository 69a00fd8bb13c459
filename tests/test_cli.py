import io

import pytest

from shimmer import Shimmer, main

FIB = """
function fib(n) {
  if (n <= 1) return n;
  return fib(n - 2) + fib(n - 1);
}

for (var i = 0; i < 10; i = i + 1) {
  print fib(i);
}
"""


@pytest.fixture
def driver():
    return Shimmer(io.StringIO(), io.StringIO())


def test_run_file(driver, tmp_path):
    script = tmp_path / "fib.shim"
    script.write_text(FIB)
    assert driver.run_file(str(script))
    assert driver.stdout.getvalue().splitlines() == [
        "0", "1", "1", "2", "3", "5", "8", "13", "21", "34"]


def test_run_file_rejects_other_extensions(driver, tmp_path):
    script = tmp_path / "fib.lox"
    script.write_text(FIB)
    assert not driver.run_file(str(script))
    assert driver.had_error
    assert driver.stderr.getvalue() == "Error: File 'fib.lox' is not a .shim file.\n"


def test_run_file_missing(driver, tmp_path):
    path = str(tmp_path / "missing.shim")
    assert not driver.run_file(path)
    assert driver.had_error
    assert driver.stderr.getvalue() == f"Error: File '{path}' not found.\n"


@pytest.mark.parametrize("source, status", [
    ("print 1;", 0),
    ("print ;", 65),
    ("return 1;", 65),
    ("print 1 / 0;", 70),
])
def test_main_exit_status(tmp_path, capsys, source, status):
    script = tmp_path / "script.shim"
    script.write_text(source)
    assert main([str(script)]) == status
    if status == 0:
        assert capsys.readouterr().out == "1\n"


def test_main_prints_runtime_errors_to_stderr(tmp_path, capsys):
    script = tmp_path / "script.shim"
    script.write_text('print "ok";\nprint nothing;')
    assert main([str(script)]) == 70
    captured = capsys.readouterr()
    assert captured.out == '"ok"\n'
    assert captured.err == "[Line 2] Runtime error: Undefined variable 'nothing'.\n"


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.shim")]) == 65


def test_prompt(driver, monkeypatch):
    lines = iter(["var a = 1;", "print a + 5;", "print b;"])

    def fake_input(prompt):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError from None

    monkeypatch.setattr("builtins.input", fake_input)
    driver.run_prompt()
    assert driver.stdout.getvalue().split("\n") == [
        "Shimmer v0.0.1 (ALPHA)", "6", "", ""]
    assert driver.stderr.getvalue() == "[Line 1] Runtime error: Undefined variable 'b'.\n"
    assert not driver.had_error
    assert not driver.had_runtime_error


def test_prompt_exit_status_is_zero(monkeypatch, capsys):
    lines = iter(["print ;"])

    def fake_input(prompt):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError from None

    monkeypatch.setattr("builtins.input", fake_input)
    assert main([]) == 0
    assert "Expected expression." in capsys.readouterr().err
