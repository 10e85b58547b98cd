from typing import Any, Dict, Optional

from calclang.errors import CalcError
from calclang.types import NUMERIC_KINDS, ArrayVal, default_value, kind_of, narrow, to_string


class Environment:
    """Represents a scope mapping identifiers to values and their declared kinds.

    Lookups and assignments walk up the parent chain; declarations always
    land in this table. The global table of an interpreter has no parent.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.values: Dict[str, Any] = {}
        self.kinds: Dict[str, str] = {}

    def exists(self, name: str) -> bool:
        return name in self.values

    def resolve(self, name: str) -> Optional['Environment']:
        """Return the table that declares ``name``, or None."""
        env = self
        while env is not None:
            if name in env.values:
                return env
            env = env.parent
        return None

    def get(self, name: str, token=None) -> Any:
        env = self.resolve(name)
        if env is None:
            raise CalcError.make('NameError', f'{name} not defined.', token)
        return env.values[name]

    def kind(self, name: str, token=None) -> str:
        env = self.resolve(name)
        if env is None:
            raise CalcError.make('NameError', f'{name} not defined.', token)
        return env.kinds[name]

    def set(self, name: str, value: Any, token=None):
        """Assign to an existing slot, keeping its declared kind.

        Only numeric slots can be assigned; the incoming number is
        narrowed or widened to the slot's kind.
        """
        env = self.resolve(name)
        if env is None:
            raise CalcError.make('NameError', f'{name} not defined.', token)
        slot_kind = env.kinds[name]
        if slot_kind not in NUMERIC_KINDS or kind_of(value) not in NUMERIC_KINDS:
            raise CalcError.make('TypeError', f'cannot assign {kind_of(value)} to {slot_kind} {name}', token)
        try:
            env.values[name] = narrow(value, slot_kind)
        except (OverflowError, ValueError) as e:
            raise CalcError.make('ArithmeticError', f'cannot store {to_string(value)} in {slot_kind} {name}: {e}', token)

    def declare(self, name: str, kind: str, value: Any = None, token=None):
        if name in self.values:
            raise CalcError.make('NameError', f'Redeclaration of {name}', token)
        if value is None:
            value = default_value(kind)
        self.values[name] = value
        self.kinds[name] = kind

    def declare_array(self, name: str, elem_kind: str, size: int, token=None) -> ArrayVal:
        arr = ArrayVal.allocate(elem_kind, size)
        self.declare(name, kind_of(arr), arr, token)
        return arr
