"""Tree-walking evaluator for calclang.

The ``Interpreter`` owns one global ``Environment`` and evaluates a
parsed ``Program`` against it. Evaluation is a single synchronous walk
of the tree; loops evaluate the same subtree again. An interpreter is a
self-contained session: two interpreters never share state, but one
interpreter must not be driven from several threads at once.
"""

from __future__ import annotations

import math
from typing import Any, List, Optional, TextIO

from .ast import (
    Node, Program, StatementBlock, ArithmeticOp, Add, Sub, Mul, Div, Pow, Neg,
    Number, Var, VarDecl, ArrayInit, Assign, ArrayAccess, ArrayAssign, Print,
    AlphaNumeric, ScanF, IfStatement, Condition, FieldDecl, FieldDeclList,
    ParamList, MethodDef, MethodDeclList, ClassDefinition, ObjectCreation,
    CallMarker, ObjectAccess,
)
from .console import Console
from .environment import Environment
from .errors import CalcError
from .lexer import Token
from .parser import parse_program
from .types import (
    VOID, VOID_KIND, INTEGER, REAL, CLASS_REF, OBJECT_REF,
    ArrayVal, ClassVal, ObjectVal, VoidVal, coerce, is_numeric, kind_of,
    narrow, to_string,
)


ARRAY_MISMATCH = 'result type of expression does not match the array element type'


class Interpreter:
    """Core interpreter that evaluates calclang ASTs."""
    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt', stdin: Optional[TextIO] = None):
        self.global_env = Environment()
        self.console = Console(stdin)
        self.debug_level = debug_level
        self.debug_file = debug_file
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None

    def debug(self, msg: str, level: int = 1):
        if self.debug_level >= level and self.debug_fp:
            self.debug_fp.write(msg + '\n')
            self.debug_fp.flush()

    # Public API
    def run(self, program: Program, env: Optional[Environment] = None) -> Any:
        if env is None:
            env = self.global_env
        if self.debug_fp is None and self.debug_level > 0:
            # a previous run closed the trace; keep appending to it
            self.debug_fp = open(self.debug_file, 'a')
        self.debug(f"run program ({len(program.children)} statements)")
        try:
            return self.evaluate(program, env)
        finally:
            if self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None

    def evaluate(self, node: Node, env: Environment) -> Any:
        if isinstance(node, (Program, StatementBlock)):
            for stmt in node.children:
                stmt.evaluate(self, env)
            return VOID
        if isinstance(node, Number):
            return node.value
        if isinstance(node, Var):
            return env.get(node.name, node.token)
        if isinstance(node, ArithmeticOp):
            left = self.evaluate(node.left, env)
            right = self.evaluate(node.right, env)
            return self.apply_arithmetic(node, left, right)
        if isinstance(node, Neg):
            value = self.evaluate(node.child, env)
            if not is_numeric(value):
                return VOID
            return -value
        if isinstance(node, VarDecl):
            env.declare(node.name, node.kind, token=node.token)
            self.debug(f"declare {node.name}: {node.kind}", 2)
            return VOID
        if isinstance(node, ArrayInit):
            size = self.evaluate(node.size_expr, env)
            if not is_numeric(size) or size < 0:
                raise CalcError.make('TypeError', f'invalid size {to_string(size)} for array {node.name}', node.token)
            size = self.to_integer(size, node.token)
            env.declare_array(node.name, node.elem_kind, size, node.token)
            self.debug(f"declare {node.name}: Array<{node.elem_kind}>[{size}]", 2)
            return VOID
        if isinstance(node, Assign):
            return self.assign(node, env)
        if isinstance(node, ArrayAccess):
            name = node.left.name
            arr = self.array_for(name, node.token, env)
            index = self.array_index(arr, name, node.right, node.token, env)
            return arr.items[index]
        if isinstance(node, ArrayAssign):
            return self.assign_element(node, env)
        if isinstance(node, Print):
            if isinstance(node.child, AlphaNumeric):
                text = node.child.text
            else:
                text = to_string(self.evaluate(node.child, env))
            self.console.write_line(text)
            return VOID
        if isinstance(node, ScanF):
            return self.scan(node, env)
        if isinstance(node, IfStatement):
            if node.is_loop:
                while self.is_true(self.evaluate(node.left, env)):
                    self.evaluate(node.right, env)
            elif self.is_true(self.evaluate(node.left, env)):
                self.evaluate(node.right, env)
            return VOID
        if isinstance(node, Condition):
            left = self.evaluate(node.left, env)
            right = self.evaluate(node.right, env)
            result = self.compare(node.token, left, right)
            self.debug(f"condition {to_string(left)} {node.op} {to_string(right)} -> {result}", 3)
            return result
        if isinstance(node, ClassDefinition):
            env.declare(node.name, CLASS_REF, ClassVal(node), node.token)
            self.debug(f"define class {node.name}", 2)
            return VOID
        if isinstance(node, FieldDeclList):
            for decl in node.children:
                self.evaluate(decl, env)
            return VOID
        if isinstance(node, FieldDecl):
            return self.evaluate(node.child, env)
        if isinstance(node, ObjectCreation):
            return self.create_object(node, env)
        if isinstance(node, ObjectAccess):
            return self.access_object(node, env)
        if isinstance(node, (AlphaNumeric, MethodDeclList, MethodDef, ParamList, CallMarker)):
            # evaluated through their parent node
            return VOID
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    # Arithmetic and conditions

    def apply_arithmetic(self, node: ArithmeticOp, a: Any, b: Any) -> Any:
        kind = coerce(a, b)
        if kind == VOID_KIND:
            self.debug(f"{type(node).__name__} on {kind_of(a)} and {kind_of(b)} gives Void", 3)
            return VOID
        if isinstance(node, Div) and b == 0:
            raise CalcError.make('ArithmeticError', 'division by zero', node.token)
        try:
            if isinstance(node, Add):
                result = a + b
            elif isinstance(node, Sub):
                result = a - b
            elif isinstance(node, Mul):
                result = a * b
            elif isinstance(node, Div):
                if kind == INTEGER:
                    # truncate toward zero
                    result = abs(a) // abs(b)
                    if (a < 0) != (b < 0):
                        result = -result
                else:
                    result = a / b
            elif isinstance(node, Pow):
                result = math.pow(a, b)
            else:
                raise NotImplementedError(f"unsupported operator {node.lexeme}")
            return narrow(result, kind)
        except (ValueError, OverflowError) as e:
            raise CalcError.make('ArithmeticError', f'{node.lexeme} on {to_string(a)} and {to_string(b)}: {e}', node.token)

    def to_integer(self, value: Any, token: Token) -> int:
        """Truncate a number to an Integer, reporting infinities and NaN."""
        try:
            return narrow(value, INTEGER)
        except (ValueError, OverflowError) as e:
            raise CalcError.make('ArithmeticError', f'cannot convert {to_string(value)} to Integer: {e}', token)

    def compare(self, op: Token, a: Any, b: Any) -> int:
        if not (is_numeric(a) and is_numeric(b)):
            return 0
        # both sides compare by their integer magnitude
        a = self.to_integer(a, op)
        b = self.to_integer(b, op)
        if op.type == 'LT':
            result = a < b
        elif op.type == 'GT':
            result = a > b
        elif op.type == 'IS':
            result = a == b
        elif op.type == 'ISNOT':
            result = a != b
        else:
            raise NotImplementedError(f"unsupported comparison {op.value}")
        return 1 if result else 0

    def is_true(self, value: Any) -> bool:
        return kind_of(value) == INTEGER and value == 1

    # Variables and arrays

    def assign(self, node: Assign, env: Environment) -> Any:
        value = self.evaluate(node.right, env)
        target = node.left
        if isinstance(value, VoidVal):
            self.debug(f"assignment of Void to {target.lexeme} skipped", 2)
            return VOID
        if isinstance(target, ObjectAccess):
            obj = self.object_for(target.object_name, target.token, env)
            if target.is_call or not obj.fields.exists(target.member):
                raise CalcError.make('NameError', f'{target.object_name}.{target.member} not defined.', target.token)
            obj.fields.set(target.member, value, target.token)
            self.debug(f"assign {target.object_name}.{target.member} = {to_string(value)}", 2)
            return VOID
        env.set(target.name, value, target.token)
        self.debug(f"assign {target.name} = {to_string(env.get(target.name))}", 2)
        return VOID

    def array_for(self, name: str, token: Token, env: Environment) -> ArrayVal:
        arr = env.get(name, token)
        if not isinstance(arr, ArrayVal):
            raise CalcError.make('TypeError', f'{name} is not an array', token)
        return arr

    def array_index(self, arr: ArrayVal, name: str, index_node: Node, token: Token, env: Environment) -> int:
        index = self.evaluate(index_node, env)
        if not is_numeric(index):
            raise CalcError.make('TypeError', f'index of {name} must be a number', token)
        index = self.to_integer(index, token)
        if index < 0 or index >= arr.size:
            raise CalcError.make('IndexError', f'index {index} out of range for {name}[{arr.size}]', token)
        return index

    def assign_element(self, node: ArrayAssign, env: Environment) -> Any:
        value = self.evaluate(node.right, env)
        arr = self.array_for(node.name, node.token, env)
        index = self.array_index(arr, node.name, node.left, node.token, env)
        if kind_of(value) != arr.elem_kind:
            self.console.diagnostic(ARRAY_MISMATCH)
            self.debug(f"{node.name}[{index}]: {kind_of(value)} into {arr.elem_kind} array skipped", 2)
            return VOID
        arr.items[index] = value
        self.debug(f"assign {node.name}[{index}] = {to_string(value)}", 2)
        return VOID

    def scan(self, node: ScanF, env: Environment) -> Any:
        kind = env.kind(node.name, node.token)
        if kind == INTEGER:
            value = self.console.read_integer()
        elif kind == REAL:
            value = self.console.read_real()
        else:
            raise CalcError.make('TypeError', f'scanf cannot read into {kind} {node.name}', node.token)
        env.set(node.name, value, node.token)
        self.debug(f"scanf {node.name} = {to_string(value)}", 2)
        return VOID

    # Classes and objects

    def class_for(self, name: str, token: Token, env: Environment) -> ClassDefinition:
        cls = env.get(name, token)
        if not isinstance(cls, ClassVal):
            raise CalcError.make('TypeError', f'{name} is not a class', token)
        return cls.definition

    def object_for(self, name: str, token: Token, env: Environment) -> ObjectVal:
        obj = env.get(name, token)
        if not isinstance(obj, ObjectVal):
            raise CalcError.make('TypeError', f'{name} is not an object', token)
        return obj

    def create_object(self, node: ObjectCreation, env: Environment) -> Any:
        definition = self.class_for(node.class_name, node.child.token, env)
        fields = Environment(parent=self.global_env)
        if definition.is_derived:
            parent = self.class_for(definition.parent_name, definition.token, env)
            self.evaluate(parent.fields, fields)
        self.evaluate(definition.fields, fields)
        obj = ObjectVal(definition.name, definition, fields)
        env.declare(node.name, OBJECT_REF, obj, node.token)
        self.debug(f"create {node.name}: {definition.name} with fields {sorted(fields.values)}", 2)
        return VOID

    def find_method(self, obj: ObjectVal, name: str, obj_name: str, env: Environment) -> MethodDef:
        definition = obj.definition
        method = definition.methods.find(name)
        if method is None and definition.is_derived:
            parent = self.class_for(definition.parent_name, definition.token, env)
            method = parent.methods.find(name)
        if method is None:
            raise CalcError.make('MethodError', f'Method: {name} not found in: {obj_name}')
        return method

    def access_object(self, node: ObjectAccess, env: Environment) -> Any:
        obj = self.object_for(node.object_name, node.token, env)
        if not node.is_call:
            if not obj.fields.exists(node.member):
                raise CalcError.make('NameError', f'{node.object_name}.{node.member} not defined.', node.token)
            return obj.fields.values[node.member]
        method = self.find_method(obj, node.member, node.object_name, env)
        args = [self.evaluate(arg, env) for arg in node.args]
        return self.call_method(obj, method, args, node.token)

    def call_method(self, obj: ObjectVal, method: MethodDef, args: List[Any], token: Token) -> Any:
        params = method.params
        if len(args) != len(params):
            raise CalcError.make('TypeError', f'{method.name} expects {len(params)} arguments, got {len(args)}', token)
        # the instance's field table is the enclosing scope of the call
        call_env = Environment(parent=obj.fields)
        for param, arg in zip(params, args):
            self.evaluate(param, call_env)
            call_env.set(param.name, arg, param.token)
        self.debug(f"call {obj.class_name}.{method.name}({', '.join(to_string(a) for a in args)})")
        self.evaluate(method.right, call_env)
        return VOID


def run_program(source: str, debug_level: int = 0, stdin: Optional[TextIO] = None) -> Interpreter:
    """Parse and run a calclang program, returning the interpreter for inspection."""
    ast_program = parse_program(source)
    interpreter = Interpreter(debug_level=debug_level, stdin=stdin)
    interpreter.run(ast_program)
    return interpreter


def run_file(file_path: str, debug_level: int = 0) -> Interpreter:
    """Parse and run a calclang source file."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    return run_program(source, debug_level=debug_level)
