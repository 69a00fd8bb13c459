import argparse
import math
import sys
import time
import weakref
from collections import namedtuple
from dataclasses import dataclass
from pathlib import Path


EPSILON = 1e-9


@dataclass(frozen=True)
class Token:
    kind: str
    lexeme: str
    line: int
    column: int

    def __str__(self):
        return f"{self.kind} {self.lexeme}"


class Scanner:
    KEYWORDS = {
        "break",
        "case",
        "continue",
        "default",
        "do",
        "else",
        "false",
        "for",
        "function",
        "if",
        "nil",
        "print",
        "return",
        "switch",
        "true",
        "var",
        "while",
    }

    def __init__(self, source):
        self.source = source
        self.start = 0
        self.current = 0
        self.line = 1
        self.column = 1
        self.start_line = 1
        self.start_column = 1

    def __iter__(self):
        while True:
            token = self.next_token()
            yield token
            if token.kind == "EOF":
                return

    def next_token(self):
        if error := self.skip_ignored():
            return error
        self.mark_start()
        if self.at_end():
            return self.make_token("EOF")

        match c := self.advance():
            case "(": return self.make_token("LEFT_PAREN")
            case ")": return self.make_token("RIGHT_PAREN")
            case "{": return self.make_token("LEFT_BRACE")
            case "}": return self.make_token("RIGHT_BRACE")
            case ",": return self.make_token("COMMA")
            case ";": return self.make_token("SEMICOLON")
            case ":": return self.make_token("COLON")
            case "?": return self.make_token("QUESTION")
            case "+": return self.make_token("PLUS")
            case "-": return self.make_token("MINUS")
            case "*": return self.make_token("STAR")
            case "/": return self.make_token("SLASH")
            case "%": return self.make_token("PERCENT")
            case "!": return self.make_token("BANG_EQUAL" if self.match("=") else "BANG")
            case "=": return self.make_token("EQUAL_EQUAL" if self.match("=") else "EQUAL")
            case "<": return self.make_token("LESS_EQUAL" if self.match("=") else "LESS")
            case ">": return self.make_token("GREATER_EQUAL" if self.match("=") else "GREATER")
            case "&":
                if self.match("&"):
                    return self.make_token("AND")
                return self.error_token("'&' not supported. Did you mean '&&'?")
            case "|":
                if self.match("|"):
                    return self.make_token("OR")
                return self.error_token("'|' not supported. Did you mean '||'?")
            case "\"": return self.string()
            case _:
                if is_digit(c):
                    return self.number()
                if is_alpha(c):
                    return self.identifier()
                return self.error_token(f"Unexpected character '{c}'.")

    def skip_ignored(self):
        while not self.at_end():
            c = self.peek()
            if c in " \r\t\n":
                self.advance()
            elif c == "/" and self.peek_next() == "/":
                while not self.at_end() and self.peek() != "\n":
                    self.advance()
            elif c == "/" and self.peek_next() == "*":
                if error := self.block_comment():
                    return error
            else:
                break
        return None

    def block_comment(self):
        self.mark_start()
        self.advance()  # /
        self.advance()  # *
        while not self.at_end():
            if self.peek() == "*" and self.peek_next() == "/":
                self.advance()
                self.advance()
                return None
            self.advance()
        return self.error_token("Unterminated block comment.")

    def string(self):
        while not self.at_end() and self.peek() != "\"":
            self.advance()

        if self.at_end():
            return self.error_token("Unterminated string.")

        self.advance()  # Closing "
        return self.make_token("STRING")

    def number(self):
        while is_digit(self.peek()):
            self.advance()

        if self.peek() == "." and is_digit(self.peek_next()):
            self.advance()
            while is_digit(self.peek()):
                self.advance()

        return self.make_token("NUMBER")

    def identifier(self):
        while is_alpha(self.peek()) or is_digit(self.peek()):
            self.advance()

        text = self.source[self.start:self.current]
        if text in Scanner.KEYWORDS:
            return self.make_token(text.upper())
        return self.make_token("IDENTIFIER")

    def mark_start(self):
        self.start = self.current
        self.start_line = self.line
        self.start_column = self.column

    def make_token(self, kind):
        lexeme = self.source[self.start:self.current]
        return Token(kind, lexeme, self.start_line, self.start_column)

    def error_token(self, message):
        return Token("ERROR", message, self.start_line, self.start_column)

    def match(self, expected):
        if not self.at_end():
            if self.source[self.current] == expected:
                self.advance()
                return True
        return False

    def advance(self):
        c = self.source[self.current]
        self.current += 1
        if c == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return c

    def peek(self):
        if self.at_end():
            return "\0"
        return self.source[self.current]

    def peek_next(self):
        if self.current + 1 >= len(self.source):
            return "\0"
        return self.source[self.current + 1]

    def at_end(self):
        return not self.current < len(self.source)


def is_digit(c):
    return "0" <= c <= "9"


def is_alpha(c):
    return "a" <= c <= "z" or "A" <= c <= "Z" or c == "_"


def make_syntax_tree_node(base_class, name, *attrs):
    def __init__(self, *values):
        if len(values) != len(attrs):
            message = f"{name}.__init__() take {len(attrs)} positional arguments but {len(values)} were given"
            raise TypeError(message)

        for attr, value in zip(attrs, values):
            setattr(self, attr, value)

    visit_fn_name = f"visit_{name.lower()}_{base_class.__name__.lower()}"

    def accept(self, visitor):
        return getattr(visitor, visit_fn_name)(self)

    def __repr__(self):
        fields = ", ".join(f"{attr}={getattr(self, attr)!r}" for attr in attrs)
        return f"{base_class.__name__}.{name}({fields})"

    subclass = type(
        name, (base_class,),
        {"__init__": __init__, "accept": accept, "__repr__": __repr__})

    setattr(base_class, name, subclass)

    def visit(self, node):
        raise NotImplementedError(f"{type(self).__name__} cannot visit {name}")

    setattr(base_class.Visitor, visit_fn_name, visit)


class Expr:
    def accept(self, visitor):
        raise NotImplementedError()

    class Visitor:
        pass


class Stmt:
    def accept(self, visitor):
        raise NotImplementedError()

    class Visitor:
        pass


# Expr subclasses. Binary also carries the logical and comma operators.
make_syntax_tree_node(Expr, "Assign", "name", "value")
make_syntax_tree_node(Expr, "Binary", "left", "operator", "right")
make_syntax_tree_node(Expr, "Call", "callee", "paren", "arguments")
make_syntax_tree_node(Expr, "Conditional", "condition", "then_branch", "else_branch")
make_syntax_tree_node(Expr, "Grouping", "expression")
make_syntax_tree_node(Expr, "Literal", "value")
make_syntax_tree_node(Expr, "Unary", "operator", "right")
make_syntax_tree_node(Expr, "Variable", "name")

# Stmt subclasses
make_syntax_tree_node(Stmt, "Block", "statements")
make_syntax_tree_node(Stmt, "Break", "keyword")
make_syntax_tree_node(Stmt, "Continue", "keyword")
make_syntax_tree_node(Stmt, "DoWhile", "body", "condition")
make_syntax_tree_node(Stmt, "Expression", "expression")
make_syntax_tree_node(Stmt, "Function", "name", "params", "body")
make_syntax_tree_node(Stmt, "If", "condition", "then_branch", "else_branch")
make_syntax_tree_node(Stmt, "Print", "expression")
make_syntax_tree_node(Stmt, "Return", "keyword", "value")
make_syntax_tree_node(Stmt, "Switch", "subject", "cases", "default")
make_syntax_tree_node(Stmt, "Var", "name", "initializer")
make_syntax_tree_node(Stmt, "While", "condition", "body", "increment")

SwitchCase = namedtuple("SwitchCase", ["condition", "body"])


class Parser:
    MAX_ARGUMENTS = 255
    MAX_NESTING = 255

    STATEMENT_STARTERS = {
        "DO", "FOR", "FUNCTION", "IF", "PRINT", "RETURN", "SWITCH", "VAR", "WHILE",
    }

    class Error(RuntimeError):
        pass

    def __init__(self, tokens, errors=None):
        self.tokens = iter(tokens)
        self.errors = sys.stderr if errors is None else errors
        self.had_error = False
        self.panic_mode = False
        self.loop_depth = 0
        self.block_depth = 0
        self.depth = 0
        self.previous = None
        self.current = self.scan()

    def parse(self):
        statements = []
        try:
            while not self.at_end():
                if (statement := self.declaration()) is not None:
                    statements.append(statement)
        except RecursionError:
            # The token stream may be cut mid-token, so parsing stops here.
            self.panic_mode = False
            self.error(self.current, "Too much nesting.")
        return statements

    def declaration(self):
        self.panic_mode = False
        try:
            if self.match("FUNCTION"):
                return self.function()
            if self.match("VAR"):
                return self.var_declaration()
            return self.statement()
        except Parser.Error:
            self.synchronize()
            return None

    def function(self):
        name = self.consume("IDENTIFIER", "Expect function name.")
        self.consume("LEFT_PAREN", "Expect '(' after function name.")

        params = []
        if not self.check("RIGHT_PAREN"):
            while True:
                if len(params) >= Parser.MAX_ARGUMENTS:
                    self.error(
                        self.current, f"Exceeded maximum of {Parser.MAX_ARGUMENTS} parameters.")
                params.append(self.consume(
                    "IDENTIFIER", "Expect parameter name."))
                if not self.match("COMMA"):
                    break

        self.consume("RIGHT_PAREN", "Expect ')' after parameters.")
        self.consume("LEFT_BRACE", "Expect '{' before function body.")

        # Loops around a declaration do not extend into its body.
        enclosing_loop_depth, self.loop_depth = self.loop_depth, 0
        self.depth += 1
        try:
            self.check_depth()
            body = self.block()
        finally:
            self.loop_depth = enclosing_loop_depth
            self.depth -= 1
        return Stmt.Function(name, params, body)

    def var_declaration(self):
        name = self.consume("IDENTIFIER", "Expected variable name.")
        initializer = None
        if self.match("EQUAL"):
            initializer = self.expression()
        self.consume("SEMICOLON", "Expect ';' after variable declaration.")
        return Stmt.Var(name, initializer)

    def statement(self):
        self.depth += 1
        try:
            self.check_depth()
            if self.match("PRINT"):
                return self.print_statement()
            if self.match("LEFT_BRACE"):
                return Stmt.Block(self.block())
            if self.match("IF"):
                return self.if_statement()
            if self.match("SWITCH"):
                return self.switch_statement()
            if self.match("WHILE"):
                return self.while_statement()
            if self.match("FOR"):
                return self.for_statement()
            if self.match("DO"):
                return self.do_while_statement()
            if keyword := self.match("BREAK"):
                return self.jump_statement(Stmt.Break, keyword, "break")
            if keyword := self.match("CONTINUE"):
                return self.jump_statement(Stmt.Continue, keyword, "continue")
            if keyword := self.match("RETURN"):
                return self.return_statement(keyword)
            return self.expression_statement()
        finally:
            self.depth -= 1

    def print_statement(self):
        expression = self.expression()
        self.consume("SEMICOLON", "Expect ';' after print expression.")
        return Stmt.Print(expression)

    def block(self):
        statements = []
        self.block_depth += 1
        try:
            while not self.check("RIGHT_BRACE") and not self.at_end():
                if (statement := self.declaration()) is not None:
                    statements.append(statement)
            self.consume("RIGHT_BRACE", "Expect '}' at end of block.")
        finally:
            self.block_depth -= 1
        return statements

    def if_statement(self):
        self.consume("LEFT_PAREN", "Expect '(' after 'if'.")
        condition = self.expression()
        self.consume("RIGHT_PAREN", "Expect ')' after 'if' condition.")
        then_branch = self.statement()
        else_branch = None
        if self.match("ELSE"):
            else_branch = self.statement()
        return Stmt.If(condition, then_branch, else_branch)

    def switch_statement(self):
        self.consume("LEFT_PAREN", "Expect '(' after 'switch'.")
        subject = self.expression()
        self.consume("RIGHT_PAREN", "Expect ')' after 'switch' expression.")
        self.consume("LEFT_BRACE", "Expect '{' at start of 'switch' body.")

        cases = []
        while self.match("CASE"):
            condition = self.expression()
            self.consume("COLON", "Expect ':' after 'case' expression.")
            cases.append(SwitchCase(condition, self.statement()))

        default = None
        if self.match("DEFAULT"):
            self.consume("COLON", "Expect ':' after 'default'.")
            default = self.statement()

        self.consume("RIGHT_BRACE", "Expect '}' at end of 'switch' body.")
        return Stmt.Switch(subject, cases, default)

    def while_statement(self):
        self.consume("LEFT_PAREN", "Expect '(' after 'while'.")
        condition = self.expression()
        self.consume("RIGHT_PAREN", "Expect ')' after 'while' condition.")
        body = self.loop_body()
        return Stmt.While(condition, body, None)

    def for_statement(self):
        self.consume("LEFT_PAREN", "Expect '(' after 'for'.")

        initializer = None
        if self.match("VAR"):
            initializer = self.var_declaration()
        elif not self.match("SEMICOLON"):
            initializer = self.expression_statement()

        condition = Expr.Literal(True)
        if not self.check("SEMICOLON"):
            condition = self.expression()
        self.consume("SEMICOLON", "Expect ';' after 'for' condition.")

        increment = None
        if not self.check("RIGHT_PAREN"):
            increment = Stmt.Expression(self.expression())
        self.consume("RIGHT_PAREN", "Expect ')' after 'for' clauses.")

        loop = Stmt.While(condition, self.loop_body(), increment)
        if initializer:
            return Stmt.Block([initializer, loop])
        return loop

    def do_while_statement(self):
        body = self.loop_body()
        self.consume("WHILE", "Expect 'while' after 'do' body.")
        self.consume("LEFT_PAREN", "Expect '(' after 'while'.")
        condition = self.expression()
        self.consume("RIGHT_PAREN", "Expect ')' after 'while' condition.")
        self.consume("SEMICOLON", "Expect ';' after 'do-while' condition.")
        return Stmt.DoWhile(body, condition)

    def loop_body(self):
        self.loop_depth += 1
        try:
            return self.statement()
        finally:
            self.loop_depth -= 1

    def jump_statement(self, node, keyword, name):
        if self.loop_depth == 0:
            self.error(keyword, f"Must be inside a loop to {name}.")
        self.consume("SEMICOLON", f"Expect ';' after '{name}'.")
        return node(keyword)

    def return_statement(self, keyword):
        value = None
        if not self.check("SEMICOLON"):
            value = self.expression()
        self.consume("SEMICOLON", "Expect ';' at end of 'return' statement.")
        return Stmt.Return(keyword, value)

    def expression_statement(self):
        expression = self.expression()
        self.consume("SEMICOLON", "Expect ';' after previous expression.")
        return Stmt.Expression(expression)

    def expression(self):
        return self.comma()

    def comma(self):
        expr = self.assignment()
        while operator := self.match("COMMA"):
            expr = Expr.Binary(expr, operator, self.assignment())
        return expr

    def assignment(self):
        expr = self.conditional()
        if equals := self.match("EQUAL"):
            value = self.assignment()
            if isinstance(expr, Expr.Variable):
                return Expr.Assign(expr.name, value)
            self.error(equals, "Invalid assignment target.")
        return expr

    def conditional(self):
        expr = self.logic_or()
        if self.match("QUESTION"):
            then_branch = self.expression()
            self.consume(
                "COLON", "Expect ':' after truthy branch of conditional.")
            else_branch = self.conditional()
            return Expr.Conditional(expr, then_branch, else_branch)
        return expr

    def logic_or(self):
        expr = self.logic_and()
        while operator := self.match("OR"):
            expr = Expr.Binary(expr, operator, self.logic_and())
        return expr

    def logic_and(self):
        expr = self.equality()
        while operator := self.match("AND"):
            expr = Expr.Binary(expr, operator, self.equality())
        return expr

    def equality(self):
        expr = self.comparison()
        while operator := self.match("BANG_EQUAL", "EQUAL_EQUAL"):
            expr = Expr.Binary(expr, operator, self.comparison())
        return expr

    def comparison(self):
        expr = self.term()
        while operator := self.match("GREATER", "GREATER_EQUAL", "LESS", "LESS_EQUAL"):
            expr = Expr.Binary(expr, operator, self.term())
        return expr

    def term(self):
        expr = self.factor()
        while operator := self.match("MINUS", "PLUS", "PERCENT"):
            expr = Expr.Binary(expr, operator, self.factor())
        return expr

    def factor(self):
        expr = self.unary()
        while operator := self.match("SLASH", "STAR"):
            expr = Expr.Binary(expr, operator, self.unary())
        return expr

    def unary(self):
        if operator := self.match("BANG", "MINUS"):
            return Expr.Unary(operator, self.unary())
        return self.call()

    def call(self):
        expr = self.primary()
        while self.match("LEFT_PAREN"):
            expr = self.finish_call(expr)
        return expr

    def finish_call(self, callee):
        arguments = []
        if not self.check("RIGHT_PAREN"):
            while True:
                if len(arguments) >= Parser.MAX_ARGUMENTS:
                    self.error(
                        self.current, f"Exceeded maximum of {Parser.MAX_ARGUMENTS} arguments.")
                arguments.append(self.assignment())
                if not self.match("COMMA"):
                    break
        paren = self.consume("RIGHT_PAREN", "Expect ')' after arguments.")
        return Expr.Call(callee, paren, arguments)

    def primary(self):
        if self.match("FALSE"):
            return Expr.Literal(False)
        if self.match("TRUE"):
            return Expr.Literal(True)
        if self.match("NIL"):
            return Expr.Literal(None)
        if token := self.match("NUMBER"):
            return Expr.Literal(float(token.lexeme))
        if token := self.match("STRING"):
            return Expr.Literal(token.lexeme[1:-1])
        if self.match("LEFT_PAREN"):
            expr = self.expression()
            self.consume("RIGHT_PAREN", "Expected ')' after previous expression.")
            return Expr.Grouping(expr)
        if token := self.match("IDENTIFIER"):
            return Expr.Variable(token)
        raise self.error(self.current, "Expected expression.")

    def check_depth(self):
        if self.depth > Parser.MAX_NESTING:
            raise RecursionError(f"More than {Parser.MAX_NESTING} nested statements.")

    def synchronize(self):
        depth = 0
        while not self.at_end():
            match self.current.kind:
                case "LEFT_BRACE":
                    depth += 1
                case "RIGHT_BRACE" if depth > 0:
                    depth -= 1
                    if depth == 0:
                        self.advance()
                        return
                case "RIGHT_BRACE":
                    # Leave the brace for the enclosing block to close.
                    if self.block_depth == 0:
                        self.advance()
                    return
                case "SEMICOLON" if depth == 0:
                    self.advance()
                    return
                case kind if depth == 0 and kind in Parser.STATEMENT_STARTERS:
                    return
            self.advance()

    def consume(self, kind, message):
        if token := self.match(kind):
            return token
        raise self.error(self.current, message)

    def match(self, *kinds):
        if self.current.kind in kinds:
            return self.advance()
        return None

    def check(self, kind):
        return self.current.kind == kind

    def advance(self):
        token = self.current
        if not self.at_end():
            self.previous = token
            self.current = self.scan()
        return token

    def scan(self):
        token = next(self.tokens)
        while token.kind == "ERROR":
            # Scanner errors are independent of any parse error before them.
            self.panic_mode = False
            self.error(token, token.lexeme)
            token = next(self.tokens)
        return token

    def at_end(self):
        return self.current.kind == "EOF"

    def error(self, token, message):
        self.had_error = True
        if not self.panic_mode:
            self.panic_mode = True
            match token.kind:
                case "ERROR": where = ""
                case "EOF": where = " at end"
                case _: where = f" at '{token.lexeme}'"
            print(f"[Line {token.line}, Col {token.column}] Error{where}: {message}",
                  file=self.errors)
        return Parser.Error(message)


class Resolver(Expr.Visitor, Stmt.Visitor):
    """Computes the scope distance of every local variable use.

    Globals are never recorded; the interpreter looks up any expression
    missing from the returned mapping in the global environment.
    """

    def __init__(self, errors=None):
        self.errors = sys.stderr if errors is None else errors
        self.scopes = []
        self.locals = {}
        self.current_function = "NONE"
        self.loop_depth = 0
        self.had_error = False

    def resolve(self, statements):
        for statement in statements:
            self.resolve_node(statement)
        return self.locals

    def resolve_node(self, expr_or_stmt):
        expr_or_stmt.accept(self)

    def visit_block_stmt(self, stmt):
        self.begin_scope()
        self.resolve(stmt.statements)
        self.end_scope()

    def visit_break_stmt(self, stmt):
        self.check_loop_depth(stmt.keyword, "Must be inside a loop to break.")

    def visit_continue_stmt(self, stmt):
        self.check_loop_depth(
            stmt.keyword, "Must be inside a loop to continue.")

    def visit_dowhile_stmt(self, stmt):
        self.resolve_loop_body(stmt.body)
        self.resolve_node(stmt.condition)

    def visit_expression_stmt(self, stmt):
        self.resolve_node(stmt.expression)

    def visit_function_stmt(self, stmt):
        # Bound eagerly so the body can refer to itself.
        self.declare(stmt.name)
        self.define(stmt.name)
        self.resolve_function(stmt, "FUNCTION")

    def visit_if_stmt(self, stmt):
        self.resolve_node(stmt.condition)
        self.resolve_node(stmt.then_branch)
        if stmt.else_branch:
            self.resolve_node(stmt.else_branch)

    def visit_print_stmt(self, stmt):
        self.resolve_node(stmt.expression)

    def visit_return_stmt(self, stmt):
        if self.current_function == "NONE":
            self.error(stmt.keyword, "Can't return from top-level code.")
        if stmt.value:
            self.resolve_node(stmt.value)

    def visit_switch_stmt(self, stmt):
        self.resolve_node(stmt.subject)
        for case in stmt.cases:
            self.resolve_node(case.condition)
            self.resolve_node(case.body)
        if stmt.default:
            self.resolve_node(stmt.default)

    def visit_var_stmt(self, stmt):
        self.declare(stmt.name)
        if stmt.initializer:
            self.resolve_node(stmt.initializer)
        self.define(stmt.name)

    def visit_while_stmt(self, stmt):
        self.resolve_node(stmt.condition)
        self.resolve_loop_body(stmt.body)
        if stmt.increment:
            self.resolve_node(stmt.increment)

    def visit_assign_expr(self, expr):
        self.resolve_node(expr.value)
        self.resolve_local(expr, expr.name)

    def visit_binary_expr(self, expr):
        self.resolve_node(expr.left)
        self.resolve_node(expr.right)

    def visit_call_expr(self, expr):
        self.resolve_node(expr.callee)
        for argument in expr.arguments:
            self.resolve_node(argument)

    def visit_conditional_expr(self, expr):
        self.resolve_node(expr.condition)
        self.resolve_node(expr.then_branch)
        self.resolve_node(expr.else_branch)

    def visit_grouping_expr(self, expr):
        self.resolve_node(expr.expression)

    def visit_literal_expr(self, expr):
        pass

    def visit_unary_expr(self, expr):
        self.resolve_node(expr.right)

    def visit_variable_expr(self, expr):
        name = expr.name.lexeme
        if self.scopes and self.scopes[-1].get(name) is False:
            self.error(
                expr.name, f"Can't read local variable '{name}' in its own initializer.")
        self.resolve_local(expr, expr.name)

    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        self.scopes.pop()

    def declare(self, name):
        if self.scopes:
            if name.lexeme in self.scopes[-1]:
                self.error(
                    name, f"Variable '{name.lexeme}' already defined in this scope.")
            self.scopes[-1][name.lexeme] = False

    def define(self, name):
        if self.scopes:
            self.scopes[-1][name.lexeme] = True

    def resolve_function(self, function, kind):
        enclosing_function = self.current_function
        enclosing_loop_depth = self.loop_depth
        self.current_function = kind
        self.loop_depth = 0
        self.begin_scope()
        for param in function.params:
            self.declare(param)
            self.define(param)
        self.resolve(function.body)
        self.end_scope()
        self.current_function = enclosing_function
        self.loop_depth = enclosing_loop_depth

    def resolve_loop_body(self, body):
        self.loop_depth += 1
        try:
            self.resolve_node(body)
        finally:
            self.loop_depth -= 1

    def resolve_local(self, expr, name):
        for i, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.locals[expr] = i
                break

    def check_loop_depth(self, keyword, message):
        if self.loop_depth == 0:
            self.error(keyword, message)

    def error(self, token, message):
        self.had_error = True
        print(f"[Line {token.line}] Error: {message}", file=self.errors)


class Environment:
    def __init__(self, enclosing=None):
        self.values = {}
        self.enclosing = enclosing

    def define(self, name, value):
        # Locals are checked by the resolver; this only fires for globals.
        if name.lexeme in self.values:
            raise Interpreter.Error(
                name, f"Variable '{name.lexeme}' already defined in this scope.")
        self.values[name.lexeme] = value

    def assign(self, name, value):
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                environment.values[name.lexeme] = value
                return
            environment = environment.enclosing
        raise Interpreter.Error(
            name, f"Undefined variable '{name.lexeme}'.")

    def get(self, name):
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                return environment.values[name.lexeme]
            environment = environment.enclosing
        raise Interpreter.Error(
            name, f"Undefined variable '{name.lexeme}'.")

    def assign_at(self, distance, name, value):
        ancestor = self.ancestor(distance)
        if name.lexeme not in ancestor.values:
            raise Interpreter.Error(
                name, f"Undefined variable '{name.lexeme}'.")
        ancestor.values[name.lexeme] = value
        return value

    def get_at(self, distance, name):
        ancestor = self.ancestor(distance)
        if name.lexeme not in ancestor.values:
            raise Interpreter.Error(
                name, f"Undefined variable '{name.lexeme}'.")
        return ancestor.values[name.lexeme]

    def ancestor(self, distance):
        if distance < 0:
            raise ValueError(f"Negative distance {distance}.")
        environment = self
        for _ in range(distance):
            environment = environment.enclosing
            if environment is None:
                raise ValueError("Distance exceeds number of ancestors.")
        return environment


class ShimmerCallable:
    name = None

    def arity(self):
        raise NotImplementedError()

    def call(self, interpreter, arguments):
        raise NotImplementedError()


class NativeFunction(ShimmerCallable):
    def __init__(self, name, arity, function):
        self.name = name
        self._arity = arity
        self.function = function

    def arity(self):
        return self._arity

    def call(self, interpreter, arguments):
        return self.function(interpreter, arguments)

    def __str__(self):
        return f"<native {self.name}>"


class UserFunction(ShimmerCallable):
    def __init__(self, declaration, closure):
        self.declaration = declaration
        self.closure = closure
        self.name = declaration.name.lexeme

    def arity(self):
        return len(self.declaration.params)

    def call(self, interpreter, arguments):
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param, argument)
        signal = interpreter.execute_block(self.declaration.body, environment)
        if signal is not None and signal.kind == "RETURN":
            return signal.value
        return None

    def __str__(self):
        return f"<fn {self.name}>"


def type_name(value):
    match value:
        case None: return "Nil"
        case bool(): return "Bool"
        case float(): return "Number"
        case str(): return "String"
        case ShimmerCallable(): return "Function"
    raise TypeError(f"Not a Shimmer value: {value!r}")


NATIVES = {}


def native(name, arity):
    def register(function):
        NATIVES[name] = NativeFunction(name, arity, function)
        return function
    return register


@native("clock", 0)
def clock(interpreter, arguments):
    return float(time.time_ns() // 1_000_000)


@native("typeof", 1)
def typeof(interpreter, arguments):
    return type_name(arguments[0])


class Signal:
    def __init__(self, kind, value=None):
        self.kind = kind
        self.value = value

    def __repr__(self):
        return f"Signal({self.kind}, {self.value!r})"


BREAK = Signal("BREAK")
CONTINUE = Signal("CONTINUE")


class Interpreter(Expr.Visitor, Stmt.Visitor):
    class Error(RuntimeError):
        def __init__(self, token, message):
            super().__init__(message)
            self.token = token
            self.message = message

    def __init__(self, stdout=None, stderr=None, natives=None):
        self.stdout = sys.stdout if stdout is None else stdout
        self.stderr = sys.stderr if stderr is None else stderr
        self.globals = Environment()
        self.environment = self.globals
        self.locals = weakref.WeakKeyDictionary()

        for function in (NATIVES.values() if natives is None else natives):
            self.globals.define(
                Token("IDENTIFIER", function.name, 0, 0), function)

    def interpret(self, statements, locals=None):
        if locals:
            self.locals.update(locals)
        try:
            for statement in statements:
                self.execute(statement)
        except Interpreter.Error as error:
            print(f"[Line {error.token.line}] Runtime error: {error.message}",
                  file=self.stderr)
            return False
        return True

    def stringify(self, value):
        match value:
            case None: return "nil"
            case True: return "true"
            case False: return "false"
            case float():
                text = repr(value)
                if text[-2:] == ".0":
                    text = text[:-2]
                return text.replace("e", "E")
            case str(): return f"\"{value}\""
        return str(value)

    def evaluate(self, expr):
        return expr.accept(self)

    def execute(self, stmt):
        return stmt.accept(self)

    def execute_block(self, statements, environment):
        previous = self.environment
        try:
            self.environment = environment
            for statement in statements:
                if signal := self.execute(statement):
                    return signal
            return None
        finally:
            self.environment = previous

    def visit_block_stmt(self, stmt):
        return self.execute_block(stmt.statements, Environment(self.environment))

    def visit_break_stmt(self, stmt):
        return BREAK

    def visit_continue_stmt(self, stmt):
        return CONTINUE

    def visit_dowhile_stmt(self, stmt):
        while True:
            signal = self.execute(stmt.body)
            if signal is BREAK:
                break
            if signal is not None and signal is not CONTINUE:
                return signal
            if not self.is_truthy(self.evaluate(stmt.condition)):
                break
        return None

    def visit_expression_stmt(self, stmt):
        self.evaluate(stmt.expression)

    def visit_function_stmt(self, stmt):
        function = UserFunction(stmt, self.environment)
        self.environment.define(stmt.name, function)

    def visit_if_stmt(self, stmt):
        if self.is_truthy(self.evaluate(stmt.condition)):
            return self.execute(stmt.then_branch)
        if stmt.else_branch:
            return self.execute(stmt.else_branch)
        return None

    def visit_print_stmt(self, stmt):
        value = self.evaluate(stmt.expression)
        print(self.stringify(value), file=self.stdout)

    def visit_return_stmt(self, stmt):
        value = None
        if stmt.value:
            value = self.evaluate(stmt.value)
        return Signal("RETURN", value)

    def visit_switch_stmt(self, stmt):
        subject = self.evaluate(stmt.subject)
        for case in stmt.cases:
            if self.is_equal(self.evaluate(case.condition), subject):
                return self.execute(case.body)
        if stmt.default:
            return self.execute(stmt.default)
        return None

    def visit_var_stmt(self, stmt):
        value = None
        if stmt.initializer:
            value = self.evaluate(stmt.initializer)
        self.environment.define(stmt.name, value)

    def visit_while_stmt(self, stmt):
        while self.is_truthy(self.evaluate(stmt.condition)):
            signal = self.execute(stmt.body)
            if signal is BREAK:
                break
            if signal is not None and signal is not CONTINUE:
                return signal
            if stmt.increment:
                self.execute(stmt.increment)
        return None

    def visit_assign_expr(self, expr):
        value = self.evaluate(expr.value)
        if (distance := self.locals.get(expr)) is not None:
            self.environment.assign_at(distance, expr.name, value)
        else:
            self.globals.assign(expr.name, value)
        return value

    def visit_binary_expr(self, expr):
        operator = expr.operator

        # Logical operators short-circuit, so the right side waits.
        match operator.kind:
            case "AND":
                left = self.evaluate(expr.left)
                if not self.is_truthy(left):
                    return left
                return self.evaluate(expr.right)
            case "OR":
                left = self.evaluate(expr.left)
                if self.is_truthy(left):
                    return left
                return self.evaluate(expr.right)

        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        match operator.kind:
            case "COMMA": return right
            case "BANG_EQUAL": return not self.is_equal(left, right)
            case "EQUAL_EQUAL": return self.is_equal(left, right)
            case "GREATER":
                self.check_operands(operator, left, right)
                return left > right
            case "GREATER_EQUAL":
                self.check_operands(operator, left, right)
                return left >= right
            case "LESS":
                self.check_operands(operator, left, right)
                return left < right
            case "LESS_EQUAL":
                self.check_operands(operator, left, right)
                return left <= right
            case "MINUS":
                self.check_operands(operator, left, right)
                return left - right
            case "PLUS":
                if isinstance(left, str) and isinstance(right, str):
                    return left + right
                self.check_operands(operator, left, right)
                return left + right
            case "SLASH":
                self.check_operands(operator, left, right)
                if right == 0.0:
                    raise Interpreter.Error(operator, "Division by 0.")
                return left / right
            case "PERCENT":
                self.check_operands(operator, left, right)
                if right == 0.0:
                    raise Interpreter.Error(operator, "Division by 0.")
                return math.fmod(left, right)
            case "STAR":
                self.check_operands(operator, left, right)
                return left * right
        raise NotImplementedError(f"Unsupported binary operator {operator.kind}")

    def visit_call_expr(self, expr):
        callee = self.evaluate(expr.callee)
        if not isinstance(callee, ShimmerCallable):
            raise Interpreter.Error(expr.paren, "Can only call functions.")
        arguments = [self.evaluate(argument) for argument in expr.arguments]
        if len(arguments) != callee.arity():
            raise Interpreter.Error(
                expr.paren, f"Expected {callee.arity()} arguments but got {len(arguments)}.")
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise Interpreter.Error(expr.paren, "Stack overflow.") from None

    def visit_conditional_expr(self, expr):
        if self.is_truthy(self.evaluate(expr.condition)):
            return self.evaluate(expr.then_branch)
        return self.evaluate(expr.else_branch)

    def visit_grouping_expr(self, expr):
        return self.evaluate(expr.expression)

    def visit_literal_expr(self, expr):
        return expr.value

    def visit_unary_expr(self, expr):
        right = self.evaluate(expr.right)
        match expr.operator.kind:
            case "BANG": return not self.is_truthy(right)
            case "MINUS":
                if not isinstance(right, float):
                    raise Interpreter.Error(
                        expr.operator,
                        f"Bad operand type for unary '{expr.operator.lexeme}': '{type_name(right)}'.")
                return -right
        raise NotImplementedError(f"Unsupported unary operator {expr.operator.kind}")

    def visit_variable_expr(self, expr):
        return self.lookup_variable(expr.name, expr)

    def lookup_variable(self, name, expr):
        if expr in self.locals:
            return self.environment.get_at(self.locals[expr], name)
        return self.globals.get(name)

    def is_truthy(self, value):
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        return True

    def is_equal(self, left, right):
        if type_name(left) != type_name(right):
            return False
        if isinstance(left, float):
            return left == right or abs(left - right) < EPSILON
        return left == right

    def check_operands(self, operator, left, right):
        if not isinstance(left, float) or not isinstance(right, float):
            raise Interpreter.Error(
                operator,
                f"Unsupported operand type(s) for '{operator.lexeme}': "
                f"'{type_name(left)}' and '{type_name(right)}'.")


class Shimmer:
    EXTENSION = ".shim"
    BANNER = "Shimmer v0.0.1 (ALPHA)"
    # Roughly a dozen host frames per Shimmer call.
    RECURSION_LIMIT = 20000

    def __init__(self, stdout=None, stderr=None):
        if sys.getrecursionlimit() < Shimmer.RECURSION_LIMIT:
            sys.setrecursionlimit(Shimmer.RECURSION_LIMIT)
        self.stdout = sys.stdout if stdout is None else stdout
        self.stderr = sys.stderr if stderr is None else stderr
        self.interpreter = Interpreter(self.stdout, self.stderr)
        self.had_error = False
        self.had_runtime_error = False

    def main(self, args):
        if args.filename is not None:
            self.run_file(args.filename)
        else:
            self.run_prompt()

        if self.had_error:
            return 65
        if self.had_runtime_error:
            return 70
        return 0

    def run_file(self, filename):
        path = Path(filename)
        if path.suffix != Shimmer.EXTENSION:
            return self.file_error(
                f"Error: File '{path.name}' is not a {Shimmer.EXTENSION} file.")
        if not path.is_file():
            return self.file_error(f"Error: File '{filename}' not found.")
        return self.run(path.read_text())

    def run_prompt(self):
        print(Shimmer.BANNER, file=self.stdout)
        while True:
            try:
                line = input("> ")
            except EOFError:
                print(file=self.stdout)
                break
            self.run(line)
        # Errors in the REPL never decide the exit status.
        self.had_error = False
        self.had_runtime_error = False

    def run(self, source):
        self.had_error = False
        self.had_runtime_error = False

        parser = Parser(Scanner(source), self.stderr)
        statements = parser.parse()

        if parser.had_error:
            self.had_error = True
            return False

        resolver = Resolver(self.stderr)
        locals = resolver.resolve(statements)

        if resolver.had_error:
            self.had_error = True
            return False

        if not self.interpreter.interpret(statements, locals):
            self.had_runtime_error = True
            return False
        return True

    def file_error(self, message):
        print(message, file=self.stderr)
        self.had_error = True
        return False


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="shimmer", description="Run Shimmer scripts")
    parser.add_argument("filename", nargs="?")
    args = parser.parse_args(argv)
    return Shimmer().main(args)


if __name__ == "__main__":
    sys.exit(main())
