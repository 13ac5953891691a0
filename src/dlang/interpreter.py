"""
DLang Interpreter
Evaluates the Abstract Syntax Tree (AST) and executes the program
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .lexer import Token, TokenType
from .errors import ErrorReporter
from .ast_nodes import *
from .stdlib.console import Console, display

logger = logging.getLogger(__name__)


class DLangRuntimeError(Exception):
    def __init__(self, token: Optional[Token], message: str):
        self.token = token
        self.message = message
        super().__init__(message)


@dataclass
class Returning:
    """Result of a statement that hit `return`; None means normal completion."""
    value: Any = None


class Environment:
    def __init__(self, enclosing: Optional['Environment'] = None):
        self.enclosing = enclosing
        self.values: Dict[str, Any] = {}

    def define(self, name: str, value: Any):
        self.values[name] = value

    def get(self, name: Token) -> Any:
        if name.lexeme in self.values:
            return self.values[name.lexeme]

        if self.enclosing:
            return self.enclosing.get(name)

        raise DLangRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value: Any):
        if name.lexeme in self.values:
            self.values[name.lexeme] = value
            return

        if self.enclosing:
            self.enclosing.assign(name, value)
            return

        raise DLangRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def ancestor(self, distance: int) -> Optional['Environment']:
        environment = self
        for _ in range(distance):
            if environment is None:
                break
            environment = environment.enclosing
        return environment

    def get_at(self, distance: int, name: Token) -> Any:
        environment = self.ancestor(distance)
        if environment is None or name.lexeme not in environment.values:
            raise DLangRuntimeError(name, f"Undefined variable '{name.lexeme}'.")
        return environment.values[name.lexeme]

    def assign_at(self, distance: int, name: Token, value: Any):
        environment = self.ancestor(distance)
        if environment is None or name.lexeme not in environment.values:
            raise DLangRuntimeError(name, f"Undefined variable '{name.lexeme}'.")
        environment.values[name.lexeme] = value


class Function:
    """Runtime value of a function literal.

    A call frame is chained to the environment active at the call site, not
    to the one where the literal was evaluated.
    """

    def __init__(self, declaration: FunctionLiteral):
        self.declaration = declaration
        self.parameters = [param.lexeme for param in declaration.params]

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        environment = Environment(interpreter.environment)

        for param, value in zip(self.parameters, arguments):
            environment.define(param, value)

        result = interpreter.execute_block(self.declaration.body, environment)
        if isinstance(result, Returning):
            return result.value
        return None

    def __str__(self) -> str:
        return f"func({', '.join(self.parameters)})"


class Interpreter:
    def __init__(self, reporter: Optional[ErrorReporter] = None, console: Optional[Console] = None):
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.console = console if console is not None else Console()
        self.globals = Environment()
        self.environment = self.globals
        self.locals: Dict[Expression, int] = {}
        # Each read expression prompts once, then keeps answering with its first value
        self.reads: Dict[Read, Any] = {}

    def interpret(self, program: Program, resolution: Optional[Dict[Expression, int]] = None):
        if resolution is not None:
            self.locals = resolution
        try:
            for statement in program.statements:
                if isinstance(self.execute(statement), Returning):
                    break
        except DLangRuntimeError as error:
            self.reporter.runtime_error(error.token, error.message)
        except RecursionError:
            self.reporter.runtime_error(None, "Maximum recursion depth exceeded.")

    def execute(self, statement: Statement) -> Optional[Returning]:
        return self.visit(statement)

    def evaluate(self, expression: Expression) -> Any:
        return self.visit(expression)

    def execute_block(self, statements: List[Statement], environment: Environment) -> Optional[Returning]:
        previous = self.environment
        try:
            self.environment = environment

            for statement in statements:
                result = self.execute(statement)
                if result is not None:
                    return result
            return None
        finally:
            self.environment = previous

    def visit(self, node: ASTNode) -> Any:
        method_name = f'visit_{node.__class__.__name__}'
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode):
        raise TypeError(f"No visit method for {node.__class__.__name__}")

    # Expression visitors
    def visit_Literal(self, node: Literal) -> Any:
        if isinstance(node.value, list):
            return [self.evaluate(element) for element in node.value]
        return node.value

    def visit_Grouping(self, node: Grouping) -> Any:
        return self.evaluate(node.inner)

    def visit_FunctionLiteral(self, node: FunctionLiteral) -> Function:
        return Function(node)

    def visit_Logical(self, node: Logical) -> bool:
        # Both sides always run
        left = self.is_truthy(self.evaluate(node.left))
        right = self.is_truthy(self.evaluate(node.right))

        operator = node.operator.type
        if operator == TokenType.OR:
            return left or right
        if operator == TokenType.XOR:
            return left != right
        return left and right

    def visit_Relation(self, node: Relation) -> bool:
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        operator = node.operator.type
        if operator == TokenType.EQUAL:
            return self.is_equal(left, right)
        if operator == TokenType.NOT_EQUAL:
            return not self.is_equal(left, right)

        self.check_number_operands(node.operator, left, right)
        if operator == TokenType.LESS:
            return left < right
        if operator == TokenType.LESS_EQUAL:
            return left <= right
        if operator == TokenType.GREATER:
            return left > right
        return left >= right

    def visit_Factor(self, node: Factor) -> Any:
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        if node.operator.type == TokenType.MINUS:
            self.check_number_operands(node.operator, left, right)
            return left - right

        if isinstance(left, float) and isinstance(right, float):
            return left + right
        if isinstance(left, str) and isinstance(right, str):
            return left + right
        if isinstance(left, list) and isinstance(right, list):
            return left + right

        raise DLangRuntimeError(node.operator, "Operands must be two numbers, two strings or two arrays.")

    def visit_Term(self, node: Term) -> float:
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        self.check_number_operands(node.operator, left, right)
        if node.operator.type == TokenType.STAR:
            return left * right
        if right == 0:
            raise DLangRuntimeError(node.operator, "Division by zero.")
        return left / right

    def visit_Unary(self, node: Unary) -> Any:
        operand = self.evaluate(node.operand)

        if node.operator is None:
            return operand

        operator = node.operator.type
        if operator == TokenType.IS:
            return self.has_type(operand, node.type_tag)

        if operator in (TokenType.MINUS, TokenType.PLUS):
            if not isinstance(operand, float):
                raise DLangRuntimeError(node.operator, "Operand must be a number.")
            return -operand if operator == TokenType.MINUS else operand

        if not isinstance(operand, bool):
            raise DLangRuntimeError(node.operator, "Operand must be a boolean.")
        return not operand

    def visit_Reference(self, node: Reference) -> Any:
        base = self.evaluate(node.base)

        if node.operator.type == TokenType.LEFT_PAREN:
            if not isinstance(base, Function):
                raise DLangRuntimeError(node.operator, "Can only call functions.")
            if len(node.arguments) != base.arity:
                raise DLangRuntimeError(
                    node.operator,
                    f"Expected {base.arity} arguments but got {len(node.arguments)}."
                )
            arguments = [self.evaluate(argument) for argument in node.arguments]
            return base.call(self, arguments)

        index = self.evaluate(node.arguments[0])
        return self.element_at(base, index, node.operator)

    def visit_Variable(self, node: Variable) -> Any:
        return self.look_up_variable(node.name, node)

    def visit_ArrayElement(self, node: ArrayElement) -> Any:
        index = self.evaluate(node.index)
        array = self.look_up_variable(node.name, node)
        return self.element_at(array, index, node.name)

    def visit_Read(self, node: Read) -> Any:
        if node in self.reads:
            return self.reads[node]

        kind = node.source.type
        try:
            if kind == TokenType.READ_INT:
                value = self.console.read_int()
            elif kind == TokenType.READ_REAL:
                value = self.console.read_real()
            else:
                value = self.console.read_string()
        except (ValueError, EOFError) as error:
            raise DLangRuntimeError(node.source, f"{node.source.lexeme}: {error}.")

        self.reads[node] = value
        return value

    # Statement visitors
    def visit_Block(self, node: Block) -> Optional[Returning]:
        return self.execute_block(node.statements, Environment(self.environment))

    def visit_Assignment(self, node: Assignment) -> None:
        target = node.target

        if isinstance(target, ArrayElement):
            # The index is left of `:=` and runs first
            index = self.evaluate(target.index)
            value = self.evaluate(node.value)
            array = self.look_up_variable(target.name, target)
            position = self.check_index(array, index, target.name)
            # Arrays are values: write a fresh copy back into the variable
            array = list(array)
            array[position] = value
            value = array
        else:
            value = self.evaluate(node.value)

        distance = self.locals.get(target)
        if distance is not None:
            self.environment.assign_at(distance, target.name, value)
        else:
            self.globals.assign(target.name, value)

    def visit_IfStatement(self, node: IfStatement) -> Optional[Returning]:
        if self.is_truthy(self.evaluate(node.condition)):
            return self.execute(node.then_branch)
        elif node.else_branch is not None:
            return self.execute(node.else_branch)
        return None

    def visit_PrintStatement(self, node: PrintStatement) -> None:
        value = self.evaluate(node.expression)
        self.console.print(display(value))

    def visit_ReturnStatement(self, node: ReturnStatement) -> Returning:
        value = None
        if node.value is not None:
            value = self.evaluate(node.value)
        return Returning(value)

    def visit_VarStatement(self, node: VarStatement) -> None:
        for declaration in node.declarations:
            value = None
            if declaration.initializer is not None:
                value = self.evaluate(declaration.initializer)
            self.environment.define(declaration.name.lexeme, value)

    def visit_WhileLoop(self, node: WhileLoop) -> Optional[Returning]:
        while self.is_truthy(self.evaluate(node.condition)):
            result = self.execute(node.body)
            if result is not None:
                return result
        return None

    def visit_ReferenceStatement(self, node: ReferenceStatement) -> None:
        self.evaluate(node.expression)

    # Helpers
    def look_up_variable(self, name: Token, node: Expression) -> Any:
        distance = self.locals.get(node)
        if distance is not None:
            return self.environment.get_at(distance, name)
        return self.globals.get(name)

    def check_index(self, array: Any, index: Any, token: Token) -> int:
        """Validate a 1-based index and return the matching list position."""
        if not isinstance(array, list):
            raise DLangRuntimeError(token, "Only arrays can be indexed.")
        if not isinstance(index, float):
            raise DLangRuntimeError(token, "Index must be a number.")
        if not index.is_integer():
            raise DLangRuntimeError(token, "Index must be a whole number.")
        if not 1 <= index <= len(array):
            raise DLangRuntimeError(token, f"Index {display(index)} is out of range 1..{len(array)}.")
        return int(index) - 1

    def element_at(self, array: Any, index: Any, token: Token) -> Any:
        return array[self.check_index(array, index, token)]

    def has_type(self, value: Any, type_tag: TypeTag) -> bool:
        if type_tag == TypeTag.INT:
            return isinstance(value, float) and value.is_integer()
        if type_tag == TypeTag.REAL:
            return isinstance(value, float)
        if type_tag == TypeTag.BOOL:
            return isinstance(value, bool)
        if type_tag == TypeTag.STRING:
            return isinstance(value, str)
        if type_tag == TypeTag.EMPTY:
            return value is None
        if type_tag == TypeTag.ARRAY:
            return isinstance(value, list)
        if type_tag == TypeTag.FUNC:
            return isinstance(value, Function)
        # No runtime value is a tuple
        return False

    def check_number_operands(self, operator: Token, left: Any, right: Any):
        if isinstance(left, float) and isinstance(right, float):
            return
        raise DLangRuntimeError(operator, "Operands must be numbers.")

    def is_equal(self, left: Any, right: Any) -> bool:
        if left is None or right is None:
            return left is right
        if isinstance(left, bool) or isinstance(right, bool):
            return type(left) is type(right) and left == right
        if isinstance(left, list) and isinstance(right, list):
            return len(left) == len(right) and all(
                self.is_equal(a, b) for a, b in zip(left, right)
            )
        return left == right

    def is_truthy(self, value: Any) -> bool:
        """Determine if a value is truthy in DLang"""
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        return True
