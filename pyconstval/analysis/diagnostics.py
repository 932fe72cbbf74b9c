"""Diagnostics raised while evaluating constant values.
Diagnostics are warnings: the node they concern still receives a qualifier
(normally Unknown) and the pass continues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pyconstval.logging import LogLevel, get_logger


class DiagnosticKind(Enum):
    """Message keys of the diagnostics the evaluator can report."""

    UNARY_OPERATOR_FAILED = "operator.unary.evaluation.failed"
    BINARY_OPERATOR_FAILED = "operator.binary.evaluation.failed"
    CLASS_NOT_FOUND = "class.find.failed"
    METHOD_NOT_FOUND = "method.find.failed"
    METHOD_NOT_FOUND_IN_CLASS = "method.find.failed.in.class"
    METHOD_EXCEPTION = "method.evaluation.exception"
    METHOD_FAILED = "method.evaluation.failed"
    CONSTRUCTOR_FAILED = "constructor.evaluation.failed"
    CONSTRUCTOR_INVOCATION_FAILED = "constructor.invocation.failed"
    FIELD_ACCESS_FAILED = "field.access.failed"
    TOO_MANY_VALUES = "too.many.values"

    @property
    def key(self) -> str:
        return self.value


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal warning attached to one node."""

    kind: DiagnosticKind
    node: int | None = None
    context: tuple[Any, ...] = ()
    message: str = ""

    def format(self) -> str:
        parts = [f"[{self.kind.key}]"]
        if self.node is not None:
            parts.append(f"node {self.node}:")
        if self.message:
            parts.append(self.message)
        elif self.context:
            parts.append(", ".join(str(c) for c in self.context))
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.key,
            "node": self.node,
            "context": [str(c) for c in self.context],
            "message": self.message,
        }


@runtime_checkable
class DiagnosticSink(Protocol):
    """Receiver of evaluation warnings."""

    def report(self, diagnostic: Diagnostic) -> None: ...


class NullSink:
    """Discards every diagnostic."""

    def report(self, diagnostic: Diagnostic) -> None:
        return None


@dataclass
class CollectingSink:
    """Records diagnostics and echoes them to the project logger."""

    diagnostics: list[Diagnostic] = field(default_factory=list)
    log_level: LogLevel = LogLevel.VERBOSE

    def report(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        get_logger().log(self.log_level, diagnostic.format(), category="diagnostic")

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind is kind]

    def for_node(self, node: int) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.node == node]

    def kinds(self) -> set[DiagnosticKind]:
        return {d.kind for d in self.diagnostics}

    def clear(self) -> None:
        self.diagnostics.clear()

    def __len__(self) -> int:
        return len(self.diagnostics)


__all__ = [
    "DiagnosticKind",
    "Diagnostic",
    "DiagnosticSink",
    "NullSink",
    "CollectingSink",
]
