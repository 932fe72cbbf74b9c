"""Operator library.
A fixed table of pure operator implementations keyed by (operator, operand
kind). Given concrete operands already converted to the kind's
representation, an entry returns the concrete result with the analyzed
language's semantics: 32/64-bit wrapping, masked shift distances, division
truncating toward zero, IEEE floating behaviour, binary32 rounding for float.
"""

from __future__ import annotations

import math
import operator as pyop
from collections.abc import Callable
from enum import Enum
from types import MappingProxyType
from typing import Any

from pyconstval.core.coercion import to_float, to_int, to_long
from pyconstval.core.exceptions import OperatorEvaluationError, OperatorNotFoundError
from pyconstval.core.types import ValueKind


class BinaryOperator(Enum):
    """Binary operators, valued by their source symbol."""

    PLUS = "+"
    MINUS = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    REMAINDER = "%"
    LEFT_SHIFT = "<<"
    RIGHT_SHIFT = ">>"
    UNSIGNED_RIGHT_SHIFT = ">>>"
    AND = "&"
    OR = "|"
    XOR = "^"
    CONDITIONAL_AND = "&&"
    CONDITIONAL_OR = "||"
    EQUAL_TO = "=="
    NOT_EQUAL_TO = "!="
    LESS_THAN = "<"
    LESS_THAN_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_THAN_EQUAL = ">="

    @property
    def is_comparison(self) -> bool:
        return self in _COMPARISONS

    @property
    def symbol(self) -> str:
        return self.value


class UnaryOperator(Enum):
    """Unary operators. Increment/decrement spell out their position."""

    UNARY_PLUS = "+"
    UNARY_MINUS = "-"
    BITWISE_COMPLEMENT = "~"
    LOGICAL_COMPLEMENT = "!"
    PREFIX_INCREMENT = "++x"
    POSTFIX_INCREMENT = "x++"
    PREFIX_DECREMENT = "--x"
    POSTFIX_DECREMENT = "x--"

    @property
    def symbol(self) -> str:
        return self.value


_COMPARISONS = frozenset(
    {
        BinaryOperator.EQUAL_TO,
        BinaryOperator.NOT_EQUAL_TO,
        BinaryOperator.LESS_THAN,
        BinaryOperator.LESS_THAN_EQUAL,
        BinaryOperator.GREATER_THAN,
        BinaryOperator.GREATER_THAN_EQUAL,
    }
)

_RELATIONAL: dict[BinaryOperator, Callable[[Any, Any], bool]] = {
    BinaryOperator.EQUAL_TO: pyop.eq,
    BinaryOperator.NOT_EQUAL_TO: pyop.ne,
    BinaryOperator.LESS_THAN: pyop.lt,
    BinaryOperator.LESS_THAN_EQUAL: pyop.le,
    BinaryOperator.GREATER_THAN: pyop.gt,
    BinaryOperator.GREATER_THAN_EQUAL: pyop.ge,
}

BinaryFn = Callable[[Any, Any], Any]
UnaryFn = Callable[[Any], Any]


def _int_divide(a: int, b: int) -> int:
    if b == 0:
        raise OperatorEvaluationError("/ by zero")
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


def _int_remainder(a: int, b: int) -> int:
    if b == 0:
        raise OperatorEvaluationError("% by zero")
    remainder = abs(a) % abs(b)
    return -remainder if a < 0 else remainder


def _float_divide(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        negative = math.copysign(1.0, a) * math.copysign(1.0, b) < 0
        return -math.inf if negative else math.inf
    return a / b


def _float_remainder(a: float, b: float) -> float:
    if math.isnan(a) or math.isnan(b) or math.isinf(a) or b == 0.0:
        return math.nan
    return math.fmod(a, b)


def _integral_binary(wrap: Callable[[int], int], bits: int) -> dict[BinaryOperator, BinaryFn]:
    shift_mask = bits - 1
    unsigned_mask = (1 << bits) - 1
    table: dict[BinaryOperator, BinaryFn] = {
        BinaryOperator.PLUS: lambda a, b: wrap(a + b),
        BinaryOperator.MINUS: lambda a, b: wrap(a - b),
        BinaryOperator.MULTIPLY: lambda a, b: wrap(a * b),
        BinaryOperator.DIVIDE: lambda a, b: wrap(_int_divide(a, b)),
        BinaryOperator.REMAINDER: lambda a, b: wrap(_int_remainder(a, b)),
        BinaryOperator.LEFT_SHIFT: lambda a, b: wrap(a << (b & shift_mask)),
        BinaryOperator.RIGHT_SHIFT: lambda a, b: wrap(a) >> (b & shift_mask),
        BinaryOperator.UNSIGNED_RIGHT_SHIFT: lambda a, b: wrap(
            (a & unsigned_mask) >> (b & shift_mask)
        ),
        BinaryOperator.AND: lambda a, b: wrap(a & b),
        BinaryOperator.OR: lambda a, b: wrap(a | b),
        BinaryOperator.XOR: lambda a, b: wrap(a ^ b),
    }
    table.update(_RELATIONAL)
    return table


def _floating_binary(rnd: Callable[[float], float]) -> dict[BinaryOperator, BinaryFn]:
    table: dict[BinaryOperator, BinaryFn] = {
        BinaryOperator.PLUS: lambda a, b: rnd(a + b),
        BinaryOperator.MINUS: lambda a, b: rnd(a - b),
        BinaryOperator.MULTIPLY: lambda a, b: rnd(a * b),
        BinaryOperator.DIVIDE: lambda a, b: rnd(_float_divide(a, b)),
        BinaryOperator.REMAINDER: lambda a, b: rnd(_float_remainder(a, b)),
    }
    table.update(_RELATIONAL)
    return table


_BOOLEAN_BINARY: dict[BinaryOperator, BinaryFn] = {
    BinaryOperator.AND: lambda a, b: a and b,
    BinaryOperator.OR: lambda a, b: a or b,
    BinaryOperator.XOR: lambda a, b: a != b,
    BinaryOperator.CONDITIONAL_AND: lambda a, b: a and b,
    BinaryOperator.CONDITIONAL_OR: lambda a, b: a or b,
    BinaryOperator.EQUAL_TO: pyop.eq,
    BinaryOperator.NOT_EQUAL_TO: pyop.ne,
}

_STRING_BINARY: dict[BinaryOperator, BinaryFn] = {
    BinaryOperator.PLUS: lambda a, b: a + b,
    **_RELATIONAL,
}


def _integral_unary(wrap: Callable[[int], int]) -> dict[UnaryOperator, UnaryFn]:
    return {
        UnaryOperator.UNARY_PLUS: wrap,
        UnaryOperator.UNARY_MINUS: lambda a: wrap(-a),
        UnaryOperator.BITWISE_COMPLEMENT: lambda a: wrap(~a),
        UnaryOperator.PREFIX_INCREMENT: lambda a: wrap(a + 1),
        UnaryOperator.POSTFIX_INCREMENT: wrap,
        UnaryOperator.PREFIX_DECREMENT: lambda a: wrap(a - 1),
        UnaryOperator.POSTFIX_DECREMENT: wrap,
    }


def _floating_unary(rnd: Callable[[float], float]) -> dict[UnaryOperator, UnaryFn]:
    return {
        UnaryOperator.UNARY_PLUS: rnd,
        UnaryOperator.UNARY_MINUS: lambda a: rnd(-a),
        UnaryOperator.PREFIX_INCREMENT: lambda a: rnd(a + 1.0),
        UnaryOperator.POSTFIX_INCREMENT: rnd,
        UnaryOperator.PREFIX_DECREMENT: lambda a: rnd(a - 1.0),
        UnaryOperator.POSTFIX_DECREMENT: rnd,
    }


class OperatorLibrary:
    """Read-only table of operator implementations.
    byte, short and char operands are promoted to int before an integral
    operator runs; the evaluator narrows the result to the declared type.
    """

    def __init__(
        self,
        binary: dict[tuple[BinaryOperator, ValueKind], BinaryFn],
        unary: dict[tuple[UnaryOperator, ValueKind], UnaryFn],
    ):
        self._binary = MappingProxyType(dict(binary))
        self._unary = MappingProxyType(dict(unary))

    @classmethod
    def standard(cls) -> OperatorLibrary:
        """Build the library with the analyzed language's operators."""
        binary: dict[tuple[BinaryOperator, ValueKind], BinaryFn] = {}
        unary: dict[tuple[UnaryOperator, ValueKind], UnaryFn] = {}
        int_binary = _integral_binary(to_int, 32)
        int_unary = _integral_unary(to_int)
        for kind in (ValueKind.BYTE, ValueKind.SHORT, ValueKind.CHAR, ValueKind.INT):
            binary.update({(op, kind): fn for op, fn in int_binary.items()})
            unary.update({(op, kind): fn for op, fn in int_unary.items()})
        binary.update({(op, ValueKind.LONG): fn for op, fn in _integral_binary(to_long, 64).items()})
        unary.update({(op, ValueKind.LONG): fn for op, fn in _integral_unary(to_long).items()})
        binary.update({(op, ValueKind.DOUBLE): fn for op, fn in _floating_binary(float).items()})
        unary.update({(op, ValueKind.DOUBLE): fn for op, fn in _floating_unary(float).items()})
        binary.update({(op, ValueKind.FLOAT): fn for op, fn in _floating_binary(to_float).items()})
        unary.update({(op, ValueKind.FLOAT): fn for op, fn in _floating_unary(to_float).items()})
        binary.update({(op, ValueKind.BOOLEAN): fn for op, fn in _BOOLEAN_BINARY.items()})
        unary[(UnaryOperator.LOGICAL_COMPLEMENT, ValueKind.BOOLEAN)] = pyop.not_
        binary.update({(op, ValueKind.STRING): fn for op, fn in _STRING_BINARY.items()})
        return cls(binary, unary)

    def lookup_binary(self, op: BinaryOperator, kind: ValueKind) -> BinaryFn:
        try:
            return self._binary[(op, kind)]
        except KeyError:
            raise OperatorNotFoundError(op.symbol, kind) from None

    def lookup_unary(self, op: UnaryOperator, kind: ValueKind) -> UnaryFn:
        try:
            return self._unary[(op, kind)]
        except KeyError:
            raise OperatorNotFoundError(op.symbol, kind) from None

    def has_binary(self, op: BinaryOperator, kind: ValueKind) -> bool:
        return (op, kind) in self._binary

    def has_unary(self, op: UnaryOperator, kind: ValueKind) -> bool:
        return (op, kind) in self._unary

    def apply_binary(self, op: BinaryOperator, kind: ValueKind, lhs: Any, rhs: Any) -> Any:
        fn = self.lookup_binary(op, kind)
        try:
            return fn(lhs, rhs)
        except OperatorEvaluationError:
            raise
        except (ArithmeticError, ValueError, TypeError) as e:
            raise OperatorEvaluationError(f"{lhs!r} {op.symbol} {rhs!r}: {e}") from e

    def apply_unary(self, op: UnaryOperator, kind: ValueKind, operand: Any) -> Any:
        fn = self.lookup_unary(op, kind)
        try:
            return fn(operand)
        except (ArithmeticError, ValueError, TypeError) as e:
            raise OperatorEvaluationError(f"{op.symbol}{operand!r}: {e}") from e

    def __len__(self) -> int:
        return len(self._binary) + len(self._unary)


_default_library: OperatorLibrary | None = None


def get_operator_library() -> OperatorLibrary:
    """Get the shared standard operator library."""
    global _default_library
    if _default_library is None:
        _default_library = OperatorLibrary.standard()
    return _default_library


__all__ = [
    "BinaryOperator",
    "UnaryOperator",
    "OperatorLibrary",
    "get_operator_library",
]
