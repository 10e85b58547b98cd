"""Abstract Syntax Tree (AST) definitions for calclang.

Every node carries the source token it was built from and belongs to
one of four shapes: a leaf with no children, a unary node with one
child, a binary node with a left and a right child, or an n-ary node
with an ordered list of children. Children are attached once by the
parser and never change afterwards, while a node may be evaluated many
times (the body of a ``while`` loop, a method body).

Evaluation is performed by the interpreter; ``Node.evaluate`` hands the
node to it together with the environment to run against.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, TYPE_CHECKING

from .lexer import Token
from .types import INTEGER, REAL

if TYPE_CHECKING:
    from .environment import Environment
    from .interpreter import Interpreter


@dataclass(eq=False)
class Node:
    """Base class for all AST nodes."""
    token: Token

    def evaluate(self, interpreter: 'Interpreter', env: 'Environment') -> Any:
        return interpreter.evaluate(self, env)

    @property
    def lexeme(self) -> str:
        return self.token.value


@dataclass(eq=False)
class LeafNode(Node):
    pass


@dataclass(eq=False)
class UnaryNode(Node):
    child: Optional[Node] = None


@dataclass(eq=False)
class BinaryNode(Node):
    left: Optional[Node] = None
    right: Optional[Node] = None


@dataclass(eq=False)
class NaryNode(Node):
    children: List[Node] = field(default_factory=list)

    def push(self, child: Node) -> None:
        self.children.append(child)


# Statement sequences

@dataclass(eq=False)
class Program(NaryNode):
    pass


@dataclass(eq=False)
class StatementBlock(NaryNode):
    pass


# Arithmetic

@dataclass(eq=False)
class ArithmeticOp(BinaryNode):
    pass


@dataclass(eq=False)
class Add(ArithmeticOp):
    pass


@dataclass(eq=False)
class Sub(ArithmeticOp):
    pass


@dataclass(eq=False)
class Mul(ArithmeticOp):
    pass


@dataclass(eq=False)
class Div(ArithmeticOp):
    pass


@dataclass(eq=False)
class Pow(ArithmeticOp):
    pass


@dataclass(eq=False)
class Neg(UnaryNode):
    pass


@dataclass(eq=False)
class Number(LeafNode):
    """A numeric literal; its value is parsed once from the lexeme."""
    value: Any = field(init=False)

    def __post_init__(self):
        if self.token.type == 'INTLIT':
            self.value = int(self.token.value)
        else:
            self.value = float(self.token.value)


@dataclass(eq=False)
class Var(LeafNode):
    @property
    def name(self) -> str:
        return self.token.value


# Declarations and assignment

def decl_kind(token: Token) -> str:
    """Map an ``int``/``real`` keyword token to its value kind."""
    return INTEGER if token.type == 'INTEGER_DECL' else REAL


@dataclass(eq=False)
class VarDecl(UnaryNode):
    @property
    def kind(self) -> str:
        return decl_kind(self.token)

    @property
    def name(self) -> str:
        return self.child.lexeme


@dataclass(eq=False)
class ArrayInit(NaryNode):
    """Array declaration; children are the size expression and the name."""
    @property
    def elem_kind(self) -> str:
        return decl_kind(self.token)

    @property
    def size_expr(self) -> Node:
        return self.children[0]

    @property
    def name(self) -> str:
        return self.children[1].lexeme


@dataclass(eq=False)
class Assign(BinaryNode):
    pass


@dataclass(eq=False)
class ArrayAccess(BinaryNode):
    """Element read; left is the array variable, right the index."""
    pass


@dataclass(eq=False)
class ArrayAssign(BinaryNode):
    """Element write to the array named by the token.

    Left is the index expression and right the value expression.
    """
    @property
    def name(self) -> str:
        return self.token.value


# Console

@dataclass(eq=False)
class Print(UnaryNode):
    pass


@dataclass(eq=False)
class AlphaNumeric(LeafNode):
    """Literal text captured between double quotes."""
    @property
    def text(self) -> str:
        return self.token.value


@dataclass(eq=False)
class ScanF(LeafNode):
    @property
    def name(self) -> str:
        return self.token.value


# Control flow

@dataclass(eq=False)
class IfStatement(BinaryNode):
    """``if`` or ``while`` depending on the token.

    Left is the condition, right the statement block.
    """
    @property
    def is_loop(self) -> bool:
        return self.token.type == 'WHILE'


@dataclass(eq=False)
class Condition(BinaryNode):
    @property
    def op(self) -> str:
        return self.token.value


# Classes and objects

@dataclass(eq=False)
class FieldDecl(UnaryNode):
    """A field declaration; the token is the access qualifier."""
    @property
    def access(self) -> str:
        return self.token.value


@dataclass(eq=False)
class FieldDeclList(NaryNode):
    pass


@dataclass(eq=False)
class ParamList(NaryNode):
    pass


@dataclass(eq=False)
class MethodDef(BinaryNode):
    """A named method; left is its ParamList, right its body."""
    @property
    def name(self) -> str:
        return self.token.value

    @property
    def params(self) -> List[VarDecl]:
        return self.left.children


@dataclass(eq=False)
class MethodDeclList(NaryNode):
    def find(self, name: str) -> Optional[MethodDef]:
        for method in self.children:
            if method.name == name:
                return method
        return None


@dataclass(eq=False)
class ClassDefinition(BinaryNode):
    """A class; left holds the fields and right the methods."""
    is_derived: bool = False
    parent_name: Optional[str] = None

    @property
    def name(self) -> str:
        return self.token.value

    @property
    def fields(self) -> FieldDeclList:
        return self.left

    @property
    def methods(self) -> MethodDeclList:
        return self.right


@dataclass(eq=False)
class ObjectCreation(UnaryNode):
    """Creates the object named by the token from the class in the child."""
    @property
    def name(self) -> str:
        return self.token.value

    @property
    def class_name(self) -> str:
        return self.child.lexeme


@dataclass(eq=False)
class CallMarker(LeafNode):
    pass


@dataclass(eq=False)
class ObjectAccess(NaryNode):
    """Field read or method call on the object named by the token.

    The first child names the member. When a CallMarker follows, the
    access is a method call and the remaining children are arguments.
    """
    @property
    def object_name(self) -> str:
        return self.token.value

    @property
    def member(self) -> str:
        return self.children[0].lexeme

    @property
    def is_call(self) -> bool:
        return len(self.children) > 1 and isinstance(self.children[1], CallMarker)

    @property
    def args(self) -> List[Node]:
        return self.children[2:]
