"""Runtime values for calclang.

This module defines the runtime value model used by the interpreter.
Numbers are plain Python values: an Integer is an ``int`` and a Real is
a ``float``. Everything else is represented by a small class below. The
helpers at the bottom of the module implement the kind rules shared by
the evaluator: numeric coercion, narrowing into a declared kind, and
conversion to printable text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, TYPE_CHECKING

if TYPE_CHECKING:
    from .ast import ClassDefinition
    from .environment import Environment


VOID_KIND = 'Void'
INTEGER = 'Integer'
REAL = 'Real'
ARRAY = 'Array'
CLASS_REF = 'ClassRef'
OBJECT_REF = 'ObjectRef'

NUMERIC_KINDS = (INTEGER, REAL)


class VoidVal:
    """Marker for the calclang ``Void`` value.

    Void is what statements return and what arithmetic yields when one
    of its operands cannot take part in a numeric operation.
    """
    def __repr__(self) -> str:
        return 'Void'


VOID = VoidVal()


@dataclass
class ErrorVal:
    """Name and message of a runtime error."""
    name: str
    message: str

    def __repr__(self) -> str:
        return f"Error(name={self.name!r}, message={self.message!r})"


@dataclass
class ArrayVal:
    """A fixed-size array of Integer or Real elements.

    The element count is set when the array is declared and never
    changes. Elements start at zero of the element kind.
    """
    elem_kind: str
    items: List[Any]

    @classmethod
    def allocate(cls, elem_kind: str, size: int) -> 'ArrayVal':
        return cls(elem_kind, [default_value(elem_kind)] * size)

    @property
    def size(self) -> int:
        return len(self.items)

    def __repr__(self) -> str:
        return f"Array({self.elem_kind}, {self.items!r})"


@dataclass
class ClassVal:
    """A reference to a class definition node."""
    definition: 'ClassDefinition'

    @property
    def name(self) -> str:
        return self.definition.name

    def __repr__(self) -> str:
        return f"<class {self.name}>"


@dataclass
class ObjectVal:
    """An instance of a class.

    Each instance owns its field table. The table is seeded from the
    class field declarations when the object is created and lives as
    long as the object does.
    """
    class_name: str
    definition: 'ClassDefinition'
    fields: 'Environment' = field(repr=False)

    def __repr__(self) -> str:
        return f"<{self.class_name} object>"


def kind_of(value: Any) -> str:
    """Return the kind tag of a runtime value."""
    if isinstance(value, bool):
        return INTEGER
    if isinstance(value, int):
        return INTEGER
    if isinstance(value, float):
        return REAL
    if isinstance(value, ArrayVal):
        return ARRAY
    if isinstance(value, ClassVal):
        return CLASS_REF
    if isinstance(value, ObjectVal):
        return OBJECT_REF
    if isinstance(value, VoidVal):
        return VOID_KIND
    return type(value).__name__


def is_numeric(value: Any) -> bool:
    return kind_of(value) in NUMERIC_KINDS


def coerce(left: Any, right: Any) -> str:
    """Pick the result kind of a binary arithmetic operation.

    Identical numeric kinds pass through and an Integer paired with a
    Real widens to Real. Any other combination, including a Void
    operand, gives Void.
    """
    lkind = kind_of(left)
    rkind = kind_of(right)
    if lkind not in NUMERIC_KINDS or rkind not in NUMERIC_KINDS:
        return VOID_KIND
    if lkind == rkind:
        return lkind
    return REAL


def narrow(value: Any, kind: str) -> Any:
    """Convert a numeric value into the given numeric kind.

    Reals narrow to Integers by truncation toward zero; Integers widen
    to Reals.
    """
    if kind == INTEGER:
        return int(value)
    if kind == REAL:
        return float(value)
    raise TypeError(f"cannot convert {kind_of(value)} to {kind}")


def default_value(kind: str) -> Any:
    if kind == INTEGER:
        return 0
    if kind == REAL:
        return 0.0
    return VOID


def to_string(value: Any) -> str:
    """Convert a value to the text written by ``print``."""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, ArrayVal):
        return '[' + ', '.join(to_string(item) for item in value.items) + ']'
    if isinstance(value, ClassVal):
        return f"<class {value.name}>"
    if isinstance(value, ObjectVal):
        return f"<{value.class_name} object>"
    if isinstance(value, VoidVal):
        return ''
    return str(value)
