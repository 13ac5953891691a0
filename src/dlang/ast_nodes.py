"""
DLang AST Nodes
Abstract Syntax Tree node definitions

Nodes compare and hash by identity: the resolver keys its distance map on
the node object itself, so two textually equal references stay distinct.
"""

from abc import ABC
from enum import Enum
from typing import List, Any, Optional
from dataclasses import dataclass

from .lexer import Token


class ASTNode(ABC):
    """Base class for all AST nodes"""
    pass


class Expression(ASTNode):
    """Base class for expressions"""
    pass


class Statement(ASTNode):
    """Base class for statements"""
    pass


class TypeTag(Enum):
    """Right-hand side of an `is` check"""
    INT = "int"
    REAL = "real"
    BOOL = "bool"
    STRING = "string"
    EMPTY = "empty"
    ARRAY = "array"
    TUPLE = "tuple"
    FUNC = "func"

    def __str__(self) -> str:
        return self.value


# Binary operations, one node per precedence level
@dataclass(eq=False)
class Logical(Expression):
    left: Expression
    operator: Token
    right: Expression


@dataclass(eq=False)
class Relation(Expression):
    left: Expression
    operator: Token
    right: Expression


@dataclass(eq=False)
class Factor(Expression):
    """Additive: + and -"""
    left: Expression
    operator: Token
    right: Expression


@dataclass(eq=False)
class Term(Expression):
    """Multiplicative: * and /"""
    left: Expression
    operator: Token
    right: Expression


@dataclass(eq=False)
class Unary(Expression):
    """Prefix `+`, `-`, `not`, or an `is <type>` check when `type_tag` is set."""
    operand: Expression
    operator: Optional[Token] = None
    type_tag: Optional[TypeTag] = None


# Calls and element access on anything but a plain variable
@dataclass(eq=False)
class Reference(Expression):
    base: Expression
    operator: Token
    arguments: List[Expression]


@dataclass(eq=False)
class Grouping(Expression):
    inner: Expression


@dataclass(eq=False)
class Literal(Expression):
    """A scalar value, or a list of element expressions for an array literal."""
    value: Any


@dataclass(eq=False)
class FunctionLiteral(Expression):
    params: List[Token]
    body: List[Statement]


@dataclass(eq=False)
class Variable(Expression):
    name: Token


@dataclass(eq=False)
class ArrayElement(Expression):
    name: Token
    index: Expression


@dataclass(eq=False)
class Read(Expression):
    """readInt, readReal or readString; `source` is the keyword token."""
    source: Token


# Statements
@dataclass(eq=False)
class Block(Statement):
    statements: List[Statement]


@dataclass(eq=False)
class Assignment(Statement):
    target: Expression
    value: Expression


@dataclass(eq=False)
class IfStatement(Statement):
    condition: Expression
    then_branch: Statement
    else_branch: Optional[Statement] = None


@dataclass(eq=False)
class PrintStatement(Statement):
    expression: Expression


@dataclass(eq=False)
class ReturnStatement(Statement):
    keyword: Token
    value: Optional[Expression] = None


@dataclass(eq=False)
class VarDeclaration:
    name: Token
    initializer: Optional[Expression] = None


@dataclass(eq=False)
class VarStatement(Statement):
    declarations: List[VarDeclaration]


@dataclass(eq=False)
class WhileLoop(Statement):
    condition: Expression
    body: Statement


@dataclass(eq=False)
class ReferenceStatement(Statement):
    """A bare reference used for its effect, usually a call"""
    expression: Expression


# Program root
@dataclass(eq=False)
class Program(ASTNode):
    statements: List[Statement]
