"""
DLang Parser
Recursive descent parser that builds an Abstract Syntax Tree (AST)
"""

import logging
from typing import List, Optional

from .lexer import Token, TokenType
from .errors import ErrorReporter
from .ast_nodes import *

logger = logging.getLogger(__name__)

RELATIONAL_OPERATORS = (
    TokenType.LESS, TokenType.LESS_EQUAL, TokenType.GREATER,
    TokenType.GREATER_EQUAL, TokenType.EQUAL, TokenType.NOT_EQUAL,
)

TYPE_TAGS = {
    TokenType.INT: TypeTag.INT,
    TokenType.REAL: TypeTag.REAL,
    TokenType.BOOL: TypeTag.BOOL,
    TokenType.STRING_TYPE: TypeTag.STRING,
    TokenType.EMPTY: TypeTag.EMPTY,
    TokenType.FUNC: TypeTag.FUNC,
}


class ParseError(Exception):
    def __init__(self, message: str, token: Token):
        self.message = message
        self.token = token
        super().__init__(f"Parse error at line {token.line}, column {token.column}: {message}")


class Parser:
    def __init__(self, tokens: List[Token], reporter: Optional[ErrorReporter] = None):
        self.tokens = tokens
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.current = 0

    def is_at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def peek(self) -> Token:
        return self.tokens[self.current]

    def previous(self) -> Token:
        return self.tokens[self.current - 1]

    def advance(self) -> Token:
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def check(self, token_type: TokenType) -> bool:
        if self.is_at_end():
            return False
        return self.peek().type == token_type

    def match(self, *types: TokenType) -> bool:
        for token_type in types:
            if self.check(token_type):
                self.advance()
                return True
        return False

    def consume(self, token_type: TokenType, message: str) -> Token:
        if self.check(token_type):
            return self.advance()

        raise self.error(self.peek(), message)

    def consume_terminator(self, message: str):
        # A `=>` function body is a full statement and has already eaten the `;`
        if self.current > 0 and self.previous().type == TokenType.SEMICOLON:
            return
        self.consume(TokenType.SEMICOLON, message)

    def error(self, token: Token, message: str) -> ParseError:
        self.reporter.token_error(token, message)
        return ParseError(message, token)

    def parse(self) -> Program:
        statements = []

        while not self.is_at_end():
            stmt = self.statement()
            if stmt:
                statements.append(stmt)

        logger.debug("parsed %d top-level statements", len(statements))
        return Program(statements)

    def statement(self) -> Optional[Statement]:
        try:
            if self.match(TokenType.VAR):
                return self.var_declaration()
            if self.match(TokenType.FOR):
                return self.for_statement()
            if self.match(TokenType.IF):
                return self.if_statement()
            if self.match(TokenType.PRINT):
                return self.print_statement()
            if self.match(TokenType.RETURN):
                return self.return_statement()
            if self.match(TokenType.WHILE):
                return self.while_statement()
            if self.match(TokenType.LOOP):
                return self.loop_statement()
            if self.match(TokenType.SEMICOLON):
                return None

            return self.assignment()
        except ParseError:
            self.synchronize()
            return None

    def body(self) -> List[Statement]:
        """Statements up to the `end` or `else` that closes the enclosing construct"""
        statements = []

        while not self.check(TokenType.END) and not self.check(TokenType.ELSE) and not self.is_at_end():
            stmt = self.statement()
            if stmt:
                statements.append(stmt)

        return statements

    def close_block(self, construct: str):
        self.consume(TokenType.END, f"Expected 'end' to close {construct}.")
        self.consume(TokenType.SEMICOLON, f"Expected ';' after 'end' of {construct}.")

    def var_declaration(self) -> VarStatement:
        declarations = []

        while True:
            name = self.consume(TokenType.IDENTIFIER, "Expected variable name.")

            initializer = None
            if self.match(TokenType.ASSIGN):
                initializer = self.expression()

            declarations.append(VarDeclaration(name, initializer))
            if not self.match(TokenType.COMMA):
                break

        self.consume_terminator("Expected ';' after variable declaration.")
        return VarStatement(declarations)

    def for_statement(self) -> Block:
        """`for i in 1..n body end;` desugared into a block around a while loop.

        The lexer has already turned `1..n` into `1; i := i + 1; i < n`, so the
        clauses here are an initializer, an increment statement and a condition.
        """
        self.match(TokenType.VAR)
        initializer = self.var_declaration()
        if len(initializer.declarations) != 1:
            raise self.error(self.previous(), "Expected a single loop variable.")

        increment = self.assignment()
        condition = self.expression()

        statements = self.body()
        statements.append(increment)
        self.close_block("for")

        loop = WhileLoop(condition, Block(statements))
        return Block([initializer, loop])

    def if_statement(self) -> IfStatement:
        condition = self.expression()
        self.consume(TokenType.THEN, "Expected 'then' after if condition.")
        then_branch = Block(self.body())

        else_branch = None
        if self.match(TokenType.ELSE):
            else_branch = Block(self.body())

        self.close_block("if")
        return IfStatement(condition, then_branch, else_branch)

    def while_statement(self) -> WhileLoop:
        condition = self.expression()
        body = Block(self.body())
        self.close_block("while")
        return WhileLoop(condition, body)

    def loop_statement(self) -> Block:
        body = Block(self.body())
        self.close_block("loop")
        return body

    def print_statement(self) -> PrintStatement:
        value = self.expression()
        self.consume_terminator("Expected ';' after value.")
        return PrintStatement(value)

    def return_statement(self) -> ReturnStatement:
        keyword = self.previous()
        value = None
        if not self.check(TokenType.SEMICOLON):
            value = self.expression()

        self.consume_terminator("Expected ';' after return value.")
        return ReturnStatement(keyword, value)

    def assignment(self) -> Statement:
        """Either `target := value;` or a bare reference such as a call."""
        target = self.reference()
        if target is None:
            raise self.error(self.peek(), "Expected statement.")

        if self.match(TokenType.ASSIGN):
            if not isinstance(target, (Variable, ArrayElement)):
                raise self.error(self.previous(), "Invalid assignment target.")
            value = self.expression()
            self.consume_terminator("Expected ';' after assignment.")
            return Assignment(target, value)

        self.consume(TokenType.SEMICOLON, "Expected ';' after reference.")
        return ReferenceStatement(target)

    def expression(self) -> Expression:
        expr = self.relation()

        while self.match(TokenType.OR, TokenType.XOR, TokenType.AND):
            operator = self.previous()
            right = self.relation()
            expr = Logical(expr, operator, right)

        return expr

    def relation(self) -> Expression:
        expr = self.factor()

        if self.match(*RELATIONAL_OPERATORS):
            operator = self.previous()
            right = self.factor()
            expr = Relation(expr, operator, right)

            if self.check_any(*RELATIONAL_OPERATORS):
                raise self.error(self.peek(), "Relational operators cannot be chained.")

        return expr

    def check_any(self, *types: TokenType) -> bool:
        return any(self.check(token_type) for token_type in types)

    def factor(self) -> Expression:
        expr = self.term()

        while self.match(TokenType.PLUS, TokenType.MINUS):
            operator = self.previous()
            right = self.term()
            expr = Factor(expr, operator, right)

        return expr

    def term(self) -> Expression:
        expr = self.unary()

        while self.match(TokenType.STAR, TokenType.SLASH):
            operator = self.previous()
            right = self.unary()
            expr = Term(expr, operator, right)

        return expr

    def unary(self) -> Expression:
        if self.match(TokenType.PLUS, TokenType.MINUS, TokenType.NOT):
            operator = self.previous()
            operand = self.operand()
            return Unary(operand, operator)

        operand = self.operand()
        if self.match(TokenType.IS):
            operator = self.previous()
            return Unary(operand, operator, self.type_indicator())

        return operand

    def operand(self) -> Expression:
        expr = self.reference()
        if expr is None:
            expr = self.primary()
        return expr

    def type_indicator(self) -> TypeTag:
        for token_type, tag in TYPE_TAGS.items():
            if self.match(token_type):
                return tag

        if self.match(TokenType.LEFT_BRACKET):
            self.consume(TokenType.RIGHT_BRACKET, "Expected ']' in array type.")
            return TypeTag.ARRAY

        if self.match(TokenType.LEFT_BRACE):
            self.consume(TokenType.RIGHT_BRACE, "Expected '}' in tuple type.")
            return TypeTag.TUPLE

        raise self.error(self.peek(), "Unknown type indicator.")

    def reference(self) -> Optional[Expression]:
        """An identifier followed by any chain of calls and index operations."""
        if not self.match(TokenType.IDENTIFIER):
            return None

        expr = Variable(self.previous())

        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.LEFT_BRACKET):
                bracket = self.previous()
                index = self.expression()
                self.consume(TokenType.RIGHT_BRACKET, "Expected ']' after index.")
                if isinstance(expr, Variable):
                    expr = ArrayElement(expr.name, index)
                else:
                    expr = Reference(expr, bracket, [index])
            elif self.match(TokenType.DOT):
                raise self.error(self.previous(), "Field access is not supported.")
            else:
                break

        return expr

    def finish_call(self, callee: Expression) -> Reference:
        paren = self.previous()
        arguments = []

        if not self.check(TokenType.RIGHT_PAREN):
            arguments.append(self.expression())
            while self.match(TokenType.COMMA):
                arguments.append(self.expression())

        self.consume(TokenType.RIGHT_PAREN, "Expected ')' after arguments.")
        return Reference(callee, paren, arguments)

    def primary(self) -> Expression:
        if self.match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self.previous().literal)

        if self.match(TokenType.TRUE):
            return Literal(True)

        if self.match(TokenType.FALSE):
            return Literal(False)

        if self.match(TokenType.EMPTY):
            return Literal(None)

        if self.match(TokenType.FUNC):
            return self.function_literal()

        if self.match(TokenType.READ_INT, TokenType.READ_REAL, TokenType.READ_STRING):
            return Read(self.previous())

        if self.match(TokenType.LEFT_PAREN):
            expr = self.expression()
            self.consume(TokenType.RIGHT_PAREN, "Expected ')' after expression.")
            return Grouping(expr)

        if self.match(TokenType.LEFT_BRACKET):
            return self.array_literal()

        raise self.error(self.peek(), "Expected expression.")

    def array_literal(self) -> Literal:
        if self.check(TokenType.RIGHT_BRACKET):
            raise self.error(self.peek(), "Array literal cannot be empty.")

        elements = [self.expression()]
        while self.match(TokenType.COMMA):
            elements.append(self.expression())

        self.consume(TokenType.RIGHT_BRACKET, "Expected ']' after array elements.")
        return Literal(elements)

    def function_literal(self) -> FunctionLiteral:
        self.consume(TokenType.LEFT_PAREN, "Expected '(' after 'func'.")

        params = []
        if not self.check(TokenType.RIGHT_PAREN):
            params.append(self.consume(TokenType.IDENTIFIER, "Expected parameter name."))
            while self.match(TokenType.COMMA):
                params.append(self.consume(TokenType.IDENTIFIER, "Expected parameter name."))

        self.consume(TokenType.RIGHT_PAREN, "Expected ')' after parameters.")

        if self.match(TokenType.IS):
            body = self.body()
            self.consume(TokenType.END, "Expected 'end' after function body.")
            return FunctionLiteral(params, body)

        if self.match(TokenType.LAMBDA):
            stmt = self.statement()
            return FunctionLiteral(params, [stmt] if stmt else [])

        raise self.error(self.peek(), "Expected 'is' or '=>' after parameters.")

    def synchronize(self):
        """Recover from parse error by finding next statement boundary"""
        self.advance()

        while not self.is_at_end():
            if self.previous().type == TokenType.SEMICOLON:
                return

            if self.peek().type in [
                TokenType.VAR, TokenType.FOR, TokenType.IF, TokenType.WHILE,
                TokenType.LOOP, TokenType.PRINT, TokenType.RETURN
            ]:
                return

            self.advance()
