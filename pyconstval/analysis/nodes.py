"""Expression nodes and the arena holding them.
Nodes refer to their children by arena index, never by object, so a node's
identity is its index. Shared subtrees are shared indices, and a
self-referential shape can be built with reserve()/define().
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from pyconstval.core.operators import BinaryOperator, UnaryOperator
from pyconstval.core.qualifiers import Qualifier, ValueSetQualifier
from pyconstval.core.types import (
    BOOLEAN,
    DOUBLE,
    FLOAT,
    INT,
    LONG,
    STRING,
    VOID,
    StaticType,
    ValueKind,
    value_kind,
)


@dataclass(frozen=True)
class CallableDecl:
    """Declaration metadata of a method or constructor.
    statically_executable marks callables that are safe to run during
    analysis.
    """

    owner: str
    name: str
    param_types: tuple[StaticType, ...] = ()
    return_type: StaticType = VOID
    is_static: bool = False
    is_constructor: bool = False
    statically_executable: bool = False
    accessible: bool = True

    @property
    def signature(self) -> tuple[str, ...]:
        return tuple(t.name for t in self.param_types)

    def __str__(self) -> str:
        params = ", ".join(self.signature)
        return f"{self.owner}.{self.name}({params})"


class _NoConstant:
    def __repr__(self) -> str:
        return "NO_CONSTANT"


NO_CONSTANT: Any = _NoConstant()


@dataclass(frozen=True)
class FieldDecl:
    """Declaration metadata of a field."""

    owner: str
    name: str
    type: StaticType
    is_static: bool = False
    is_final: bool = False
    constant: Any = NO_CONSTANT

    @property
    def is_compile_time_constant(self) -> bool:
        return self.constant is not NO_CONSTANT


@dataclass(frozen=True)
class ValueAnnotation:
    """A value annotation written on a declaration, as given by the framework.
    Unlike a Qualifier it may list more than MAX_VALUES values.
    """

    variant: type[ValueSetQualifier]
    values: tuple = ()


@dataclass(frozen=True)
class ExprNode:
    """Base expression node. type is the declared static type."""

    type: StaticType

    def children(self) -> tuple[int, ...]:
        return ()


@dataclass(frozen=True)
class Literal(ExprNode):
    """A literal. char literals carry a 1-character string, null carries None."""

    value: Any


@dataclass(frozen=True)
class Identifier(ExprNode):
    """A variable reference, optionally with a declared value."""

    name: str
    declared: Qualifier | ValueAnnotation | None = None


@dataclass(frozen=True)
class Cast(ExprNode):
    expression: int

    def children(self) -> tuple[int, ...]:
        return (self.expression,)


@dataclass(frozen=True)
class Unary(ExprNode):
    operator: UnaryOperator
    operand: int

    def children(self) -> tuple[int, ...]:
        return (self.operand,)


@dataclass(frozen=True)
class Binary(ExprNode):
    operator: BinaryOperator
    left: int
    right: int

    def children(self) -> tuple[int, ...]:
        return (self.left, self.right)


@dataclass(frozen=True)
class FieldAccess(ExprNode):
    """receiver.name; receiver is None for a static field named through its class."""

    receiver: int | None
    name: str
    field: FieldDecl | None = None

    def children(self) -> tuple[int, ...]:
        return () if self.receiver is None else (self.receiver,)


@dataclass(frozen=True)
class MethodCall(ExprNode):
    method: CallableDecl
    receiver: int | None = None
    arguments: tuple[int, ...] = ()

    def children(self) -> tuple[int, ...]:
        head = () if self.receiver is None else (self.receiver,)
        return head + self.arguments


@dataclass(frozen=True)
class NewClass(ExprNode):
    constructor: CallableDecl
    arguments: tuple[int, ...] = ()

    def children(self) -> tuple[int, ...]:
        return self.arguments


@dataclass(frozen=True)
class NewArray(ExprNode):
    """new T[d1][d2]... or new T[] {i1, i2, ...}; initializers is None when absent."""

    dimensions: tuple[int, ...] = ()
    initializers: tuple[int, ...] | None = None

    def children(self) -> tuple[int, ...]:
        return self.dimensions + (self.initializers or ())


class NodeArena:
    """Owner of all nodes of one analysis pass, addressed by stable index."""

    def __init__(self):
        self._nodes: list[ExprNode | None] = []

    def add(self, node: ExprNode) -> int:
        self._nodes.append(node)
        return len(self._nodes) - 1

    def reserve(self) -> int:
        """Allocate an index to be defined later."""
        self._nodes.append(None)
        return len(self._nodes) - 1

    def define(self, index: int, node: ExprNode) -> int:
        if self._nodes[index] is not None:
            raise ValueError(f"node {index} is already defined")
        self._nodes[index] = node
        return index

    def get(self, index: int) -> ExprNode:
        if index < 0 or index >= len(self._nodes) or self._nodes[index] is None:
            raise KeyError(f"no node at index {index}")
        return self._nodes[index]

    __getitem__ = get

    def __contains__(self, index: object) -> bool:
        return (
            isinstance(index, int)
            and 0 <= index < len(self._nodes)
            and self._nodes[index] is not None
        )

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[tuple[int, ExprNode]]:
        for index, node in enumerate(self._nodes):
            if node is not None:
                yield index, node


_NUMERIC_RANK = {
    ValueKind.BYTE: 0,
    ValueKind.SHORT: 0,
    ValueKind.CHAR: 0,
    ValueKind.INT: 0,
    ValueKind.LONG: 1,
    ValueKind.FLOAT: 2,
    ValueKind.DOUBLE: 3,
}
_RANKED_TYPES = (INT, LONG, FLOAT, DOUBLE)


def promoted_type(left: StaticType, right: StaticType) -> StaticType:
    """Result type of a non-comparison binary operator on two operand types."""
    lk, rk = value_kind(left), value_kind(right)
    if ValueKind.STRING in (lk, rk):
        return STRING
    if lk is ValueKind.BOOLEAN and rk is ValueKind.BOOLEAN:
        return BOOLEAN
    if lk in _NUMERIC_RANK and rk in _NUMERIC_RANK:
        return _RANKED_TYPES[max(_NUMERIC_RANK[lk], _NUMERIC_RANK[rk])]
    return left


def _literal_type(value: Any) -> StaticType:
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, int):
        return INT if -(2**31) <= value < 2**31 else LONG
    if isinstance(value, float):
        return DOUBLE
    if isinstance(value, str):
        return STRING
    raise TypeError(f"cannot infer a literal type for {value!r}")


@dataclass
class TreeBuilder:
    """Convenience builder adding nodes to an arena and returning their indices."""

    arena: NodeArena = field(default_factory=NodeArena)

    def type_of(self, index: int) -> StaticType:
        return self.arena.get(index).type

    def literal(self, value: Any, type: StaticType | None = None) -> int:
        return self.arena.add(Literal(type or _literal_type(value), value))

    def null(self, type: StaticType) -> int:
        return self.arena.add(Literal(type, None))

    def ident(
        self,
        name: str,
        type: StaticType,
        declared: Qualifier | ValueAnnotation | None = None,
    ) -> int:
        return self.arena.add(Identifier(type, name, declared))

    def cast(self, type: StaticType, expression: int) -> int:
        return self.arena.add(Cast(type, expression))

    def unary(
        self,
        operator: UnaryOperator | str,
        operand: int,
        type: StaticType | None = None,
    ) -> int:
        op = operator if isinstance(operator, UnaryOperator) else UnaryOperator(operator)
        return self.arena.add(Unary(type or self.type_of(operand), op, operand))

    def binary(
        self,
        operator: BinaryOperator | str,
        left: int,
        right: int,
        type: StaticType | None = None,
    ) -> int:
        op = operator if isinstance(operator, BinaryOperator) else BinaryOperator(operator)
        if type is None:
            if op.is_comparison or op in (
                BinaryOperator.CONDITIONAL_AND,
                BinaryOperator.CONDITIONAL_OR,
            ):
                type = BOOLEAN
            elif op in (
                BinaryOperator.LEFT_SHIFT,
                BinaryOperator.RIGHT_SHIFT,
                BinaryOperator.UNSIGNED_RIGHT_SHIFT,
            ):
                type = promoted_type(self.type_of(left), INT)
            else:
                type = promoted_type(self.type_of(left), self.type_of(right))
        return self.arena.add(Binary(type, op, left, right))

    def field(
        self,
        receiver: int | None,
        name: str,
        type: StaticType,
        decl: FieldDecl | None = None,
    ) -> int:
        return self.arena.add(FieldAccess(type, receiver, name, decl))

    def static_field(self, decl: FieldDecl) -> int:
        return self.arena.add(FieldAccess(decl.type, None, decl.name, decl))

    def array_length(self, receiver: int) -> int:
        return self.arena.add(FieldAccess(INT, receiver, "length"))

    def call(
        self,
        method: CallableDecl,
        arguments: Sequence[int] = (),
        receiver: int | None = None,
    ) -> int:
        return self.arena.add(MethodCall(method.return_type, method, receiver, tuple(arguments)))

    def new(self, constructor: CallableDecl, arguments: Sequence[int] = ()) -> int:
        return self.arena.add(
            NewClass(StaticType(constructor.owner), constructor, tuple(arguments))
        )

    def new_array(
        self,
        type: StaticType,
        dimensions: Sequence[int] = (),
        initializers: Sequence[int] | None = None,
    ) -> int:
        inits = None if initializers is None else tuple(initializers)
        return self.arena.add(NewArray(type, tuple(dimensions), inits))


__all__ = [
    "CallableDecl",
    "FieldDecl",
    "NO_CONSTANT",
    "ValueAnnotation",
    "ExprNode",
    "Literal",
    "Identifier",
    "Cast",
    "Unary",
    "Binary",
    "FieldAccess",
    "MethodCall",
    "NewClass",
    "NewArray",
    "NodeArena",
    "TreeBuilder",
    "promoted_type",
]
