"""Invocation capability: running analyzable callables on concrete values.
The evaluator never looks callables up by reflection. It asks an
InvocationCapability to resolve a declaration, to invoke it on one
combination of concrete arguments, or to read a static field. The
CallableRegistry implementation answers from an explicit table built once
with RegistryBuilder.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pyconstval.analysis.nodes import CallableDecl
from pyconstval.core.exceptions import (
    CallableNotFoundError,
    ClassNotFoundError,
    FieldNotFoundError,
    InvocationError,
)
from pyconstval.core.types import StaticType, ValueKind, type_of, value_kind

CONSTRUCTOR_NAME = "<init>"

CallableKey = tuple[str, str, tuple[str, ...]]


@dataclass(frozen=True)
class ResolvedCallable:
    """A declaration bound to the Python callable that implements it."""

    decl: CallableDecl
    target: Callable[..., Any]

    @property
    def is_static(self) -> bool:
        return self.decl.is_static

    @property
    def is_constructor(self) -> bool:
        return self.decl.is_constructor

    def __str__(self) -> str:
        return str(self.decl)


def marshal_value(value: Any, static_type: StaticType | str, charset: str = "utf-8") -> Any:
    """Convert a domain value to what an implementation expects for a type.
    char values travel as 1-character strings and byte[] values as bytes.
    """
    kind = value_kind(static_type)
    if kind is ValueKind.CHAR and isinstance(value, int) and not isinstance(value, bool):
        return chr(value)
    if kind is ValueKind.BYTE_ARRAY and isinstance(value, str):
        return value.encode(charset)
    return value


def marshal_arguments(
    param_types: Sequence[StaticType],
    args: Sequence[Any],
    charset: str = "utf-8",
) -> list[Any]:
    return [marshal_value(a, t, charset) for t, a in zip(param_types, args, strict=True)]


def callable_key(decl: CallableDecl) -> CallableKey:
    name = CONSTRUCTOR_NAME if decl.is_constructor else decl.name
    return (decl.owner, name, decl.signature)


class InvocationCapability(ABC):
    """Resolves and runs analyzable callables for the evaluator."""

    charset: str = "utf-8"

    @abstractmethod
    def resolve(self, decl: CallableDecl) -> ResolvedCallable:
        """Find the implementation of a declaration.
        Raises:
            ClassNotFoundError: the owning class is unknown
            CallableNotFoundError: the class has no such member
        """

    @abstractmethod
    def read_field(self, owner: str, name: str) -> Any:
        """Read a static field.
        Raises:
            ClassNotFoundError: the owning class is unknown
            FieldNotFoundError: the class has no such field
        """

    def invoke(self, resolved: ResolvedCallable, receiver: Any, args: Sequence[Any]) -> Any:
        """Run one combination of concrete arguments.
        Instance methods receive the receiver as first positional argument.
        Any failure, including an exception raised by the implementation,
        is raised as InvocationError.
        """
        decl = resolved.decl
        if len(args) != len(decl.param_types):
            raise InvocationError(str(decl))
        params = marshal_arguments(decl.param_types, args, self.charset)
        if not (decl.is_static or decl.is_constructor):
            params.insert(0, marshal_value(receiver, decl.owner, self.charset))
        try:
            return resolved.target(*params)
        except Exception as e:
            raise InvocationError(str(decl), e) from e


class CallableRegistry(InvocationCapability):
    """Reflection-free capability backed by explicit, read-only tables."""

    def __init__(
        self,
        callables: dict[CallableKey, Callable[..., Any]],
        fields: dict[tuple[str, str], Any],
        classes: Iterable[str] = (),
        charset: str = "utf-8",
    ):
        self._callables = MappingProxyType(dict(callables))
        self._fields = MappingProxyType(dict(fields))
        owners = {k[0] for k in callables} | {k[0] for k in fields} | set(classes)
        self._classes = frozenset(owners)
        self.charset = charset

    def resolve(self, decl: CallableDecl) -> ResolvedCallable:
        if decl.owner not in self._classes:
            raise ClassNotFoundError(decl.owner)
        key = callable_key(decl)
        target = self._callables.get(key)
        if target is None:
            raise CallableNotFoundError(decl.owner, key[1], decl.signature)
        return ResolvedCallable(decl, target)

    def read_field(self, owner: str, name: str) -> Any:
        if owner not in self._classes:
            raise ClassNotFoundError(owner)
        try:
            return self._fields[(owner, name)]
        except KeyError:
            raise FieldNotFoundError(owner, name) from None

    def has_class(self, owner: str) -> bool:
        return owner in self._classes

    @property
    def classes(self) -> frozenset[str]:
        return self._classes

    def callables(self) -> list[CallableKey]:
        return sorted(self._callables)

    def fields(self) -> list[tuple[str, str]]:
        return sorted(self._fields)

    def __len__(self) -> int:
        return len(self._callables) + len(self._fields)


def _signature(params: Iterable[StaticType | str]) -> tuple[str, ...]:
    return tuple(p.name if isinstance(p, StaticType) else type_of(p).name for p in params)


class RegistryBuilder:
    """Collects analyzable members, then freezes them into a CallableRegistry.
    Example:
        registry = (
            RegistryBuilder()
            .method("java.lang.Math", "abs", ["int"], abs)
            .field("java.lang.Integer", "MAX_VALUE", 2**31 - 1)
            .build()
        )
    """

    def __init__(self, charset: str = "utf-8"):
        self.charset = charset
        self._callables: dict[CallableKey, Callable[..., Any]] = {}
        self._fields: dict[tuple[str, str], Any] = {}
        self._classes: set[str] = set()

    def declare_class(self, owner: str) -> RegistryBuilder:
        """Make a class resolvable even without registered members."""
        self._classes.add(owner)
        return self

    def method(
        self,
        owner: str,
        name: str,
        params: Iterable[StaticType | str],
        fn: Callable[..., Any],
    ) -> RegistryBuilder:
        """Register a method; instance methods take the receiver first."""
        if name == CONSTRUCTOR_NAME:
            raise ValueError("use constructor() to register constructors")
        self._callables[(owner, name, _signature(params))] = fn
        return self

    def constructor(
        self,
        owner: str,
        params: Iterable[StaticType | str],
        fn: Callable[..., Any],
    ) -> RegistryBuilder:
        self._callables[(owner, CONSTRUCTOR_NAME, _signature(params))] = fn
        return self

    def field(self, owner: str, name: str, value: Any) -> RegistryBuilder:
        self._fields[(owner, name)] = value
        return self

    def include(self, registry: CallableRegistry) -> RegistryBuilder:
        """Copy every member of an existing registry."""
        for key in registry.callables():
            self._callables[key] = registry._callables[key]
        for key in registry.fields():
            self._fields[key] = registry._fields[key]
        self._classes |= registry.classes
        return self

    def build(self) -> CallableRegistry:
        return CallableRegistry(
            self._callables,
            self._fields,
            classes=self._classes,
            charset=self.charset,
        )


__all__ = [
    "CONSTRUCTOR_NAME",
    "ResolvedCallable",
    "InvocationCapability",
    "CallableRegistry",
    "RegistryBuilder",
    "callable_key",
    "marshal_value",
    "marshal_arguments",
]
