"""
Error taxonomy for constant-value evaluation.
Every failure the evaluator can meet is raised as one of these exceptions
at the point where it happens and caught by the evaluator, which turns it
into an Unknown qualifier plus a diagnostic. None of them escape evaluate().
Categories:
- COVERAGE_MISS: expression type is not tracked (silent)
- RESOLUTION: class, callable or field cannot be resolved (reported)
- INVOCATION: executing a callable failed (reported, combination dropped)
- CAPACITY: a value set would exceed MAX_VALUES (silent)
- OPERATOR: no operator for the operand kind, or the operator failed
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Any


class ErrorCategory(Enum):
    """Categories of evaluation failures."""

    COVERAGE_MISS = auto()
    RESOLUTION = auto()
    INVOCATION = auto()
    CAPACITY = auto()
    OPERATOR = auto()
    COERCION = auto()


class ConstValError(Exception):
    """Base class for all evaluation failures."""

    category: ErrorCategory = ErrorCategory.INVOCATION

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class CoercionError(ConstValError):
    """A concrete value cannot be converted to the requested kind."""

    category = ErrorCategory.COERCION


class CapacityError(ConstValError):
    """A value set exceeded MAX_VALUES."""

    category = ErrorCategory.CAPACITY


class OperatorNotFoundError(ConstValError):
    """No operator is defined for the symbol and operand kind."""

    category = ErrorCategory.OPERATOR

    def __init__(self, operator: str, kind: Any):
        super().__init__(f"no operator {operator!r} for {kind}", operator=operator, kind=kind)
        self.operator = operator
        self.kind = kind


class OperatorEvaluationError(ConstValError):
    """The operator is defined but failed on these operands (e.g. x / 0)."""

    category = ErrorCategory.OPERATOR


class ResolutionError(ConstValError):
    """A class, callable or field could not be resolved."""

    category = ErrorCategory.RESOLUTION


class ClassNotFoundError(ResolutionError):
    def __init__(self, class_name: str):
        super().__init__(f"class not found: {class_name}", class_name=class_name)
        self.class_name = class_name


class CallableNotFoundError(ResolutionError):
    def __init__(self, owner: str, name: str, param_types: tuple[str, ...] = ()):
        params = ", ".join(param_types)
        super().__init__(
            f"no callable {owner}.{name}({params})",
            owner=owner,
            name=name,
            param_types=param_types,
        )
        self.owner = owner
        self.name = name
        self.param_types = param_types


class FieldNotFoundError(ResolutionError):
    def __init__(self, owner: str, name: str):
        super().__init__(f"no field {owner}.{name}", owner=owner, name=name)
        self.owner = owner
        self.name = name


class InvocationError(ConstValError):
    """Executing a resolved callable raised or otherwise failed."""

    category = ErrorCategory.INVOCATION

    def __init__(self, target: str, cause: BaseException | None = None):
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(f"invocation of {target} failed{detail}", target=target)
        self.target = target
        self.cause = cause


def get_error_category(exc: BaseException) -> ErrorCategory:
    """Get the category for an exception, INVOCATION for foreign ones."""
    if isinstance(exc, ConstValError):
        return exc.category
    return ErrorCategory.INVOCATION


__all__ = [
    "ErrorCategory",
    "ConstValError",
    "CoercionError",
    "CapacityError",
    "OperatorNotFoundError",
    "OperatorEvaluationError",
    "ResolutionError",
    "ClassNotFoundError",
    "CallableNotFoundError",
    "FieldNotFoundError",
    "InvocationError",
    "get_error_category",
]
