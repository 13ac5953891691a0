"""
DLang Resolver
Static pass that computes, for every local variable reference, how many
scopes up its declaration lives
"""

import logging
from typing import Dict, List, Optional

from .lexer import Token
from .errors import ErrorReporter
from .ast_nodes import *

logger = logging.getLogger(__name__)


class Resolver:
    """Walks the tree once and builds the reference -> distance map.

    Each scope maps a name to False while its initializer is being resolved
    and to True once it is defined. References that match no local scope are
    left out of the map and are looked up in the global frame at run time.
    """

    def __init__(self, reporter: Optional[ErrorReporter] = None):
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.scopes: List[Dict[str, bool]] = []
        # Top-level names, tracked only to catch `var x := x;` for a new global
        self.globals: Dict[str, bool] = {}
        self.locals: Dict[Expression, int] = {}

    def resolve(self, program: Program) -> Dict[Expression, int]:
        self.resolve_statements(program.statements)
        logger.debug("resolved %d local references", len(self.locals))
        return self.locals

    def resolve_statements(self, statements: List[Statement]):
        for statement in statements:
            self.visit(statement)

    def visit(self, node: ASTNode):
        method_name = f'visit_{node.__class__.__name__}'
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode):
        raise TypeError(f"No visit method for {node.__class__.__name__}")

    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        self.scopes.pop()

    def declare(self, name: Token):
        if not self.scopes:
            # Redefining a global is allowed; the old value stays readable
            self.globals.setdefault(name.lexeme, False)
            return

        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.reporter.token_error(name, "Variable with this name already declared in this scope.")

        scope[name.lexeme] = False

    def define(self, name: Token):
        if not self.scopes:
            self.globals[name.lexeme] = True
            return
        self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr: Expression, name: Token):
        for depth, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.locals[expr] = depth
                return

    def check_initializer(self, name: Token):
        scope = self.scopes[-1] if self.scopes else self.globals
        if scope.get(name.lexeme) is False:
            self.reporter.token_error(name, "Cannot read local variable in its own initializer.")

    # Statement visitors
    def visit_Block(self, node: Block):
        self.begin_scope()
        self.resolve_statements(node.statements)
        self.end_scope()

    def visit_Assignment(self, node: Assignment):
        self.visit(node.target)
        self.visit(node.value)

    def visit_IfStatement(self, node: IfStatement):
        self.visit(node.condition)
        self.visit(node.then_branch)
        if node.else_branch is not None:
            self.visit(node.else_branch)

    def visit_PrintStatement(self, node: PrintStatement):
        self.visit(node.expression)

    def visit_ReturnStatement(self, node: ReturnStatement):
        if node.value is not None:
            self.visit(node.value)

    def visit_VarStatement(self, node: VarStatement):
        for declaration in node.declarations:
            self.declare(declaration.name)
            if declaration.initializer is not None:
                self.visit(declaration.initializer)
            self.define(declaration.name)

    def visit_WhileLoop(self, node: WhileLoop):
        self.visit(node.condition)
        self.visit(node.body)

    def visit_ReferenceStatement(self, node: ReferenceStatement):
        self.visit(node.expression)

    # Expression visitors
    def visit_Logical(self, node: Logical):
        self.visit(node.left)
        self.visit(node.right)

    visit_Relation = visit_Logical
    visit_Factor = visit_Logical
    visit_Term = visit_Logical

    def visit_Unary(self, node: Unary):
        self.visit(node.operand)

    def visit_Reference(self, node: Reference):
        self.visit(node.base)
        for argument in node.arguments:
            self.visit(argument)

    def visit_Grouping(self, node: Grouping):
        self.visit(node.inner)

    def visit_Literal(self, node: Literal):
        if isinstance(node.value, list):
            for element in node.value:
                self.visit(element)

    def visit_FunctionLiteral(self, node: FunctionLiteral):
        # Parameters and body statements share the call frame
        self.begin_scope()
        for param in node.params:
            self.declare(param)
            self.define(param)
        self.resolve_statements(node.body)
        self.end_scope()

    def visit_Variable(self, node: Variable):
        self.check_initializer(node.name)
        self.resolve_local(node, node.name)

    def visit_ArrayElement(self, node: ArrayElement):
        self.check_initializer(node.name)
        self.visit(node.index)
        self.resolve_local(node, node.name)

    def visit_Read(self, node: Read):
        pass
