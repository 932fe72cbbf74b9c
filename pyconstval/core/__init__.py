"""Core module for PyConstVal.
Provides:
- Covered-type registry and value kinds
- Qualifiers and the value-set lattice
- Java-style coercion and the operator library
- Result folding and the error taxonomy
"""

from pyconstval.core.coercion import cast_qualifier, convert, java_string
from pyconstval.core.exceptions import (
    CallableNotFoundError,
    CapacityError,
    ClassNotFoundError,
    CoercionError,
    ConstValError,
    ErrorCategory,
    FieldNotFoundError,
    InvocationError,
    OperatorEvaluationError,
    OperatorNotFoundError,
    ResolutionError,
    get_error_category,
)
from pyconstval.core.folding import fold_results
from pyconstval.core.lattice import QualifierHierarchy, is_subtype, join, least_upper_bound
from pyconstval.core.operators import (
    BinaryOperator,
    OperatorLibrary,
    UnaryOperator,
    get_operator_library,
)
from pyconstval.core.qualifiers import (
    BOTTOM,
    MAX_VALUES,
    UNKNOWN,
    ArrayLenSet,
    Bottom,
    BoolSet,
    DoubleSet,
    IntSet,
    Qualifier,
    StringSet,
    Unknown,
    ValueSetQualifier,
)
from pyconstval.core.types import StaticType, ValueKind, is_covered, value_kind

__all__ = [
    "ArrayLenSet",
    "BOTTOM",
    "BinaryOperator",
    "BoolSet",
    "Bottom",
    "CallableNotFoundError",
    "CapacityError",
    "ClassNotFoundError",
    "CoercionError",
    "ConstValError",
    "DoubleSet",
    "ErrorCategory",
    "FieldNotFoundError",
    "IntSet",
    "InvocationError",
    "MAX_VALUES",
    "OperatorEvaluationError",
    "OperatorLibrary",
    "OperatorNotFoundError",
    "Qualifier",
    "QualifierHierarchy",
    "ResolutionError",
    "StaticType",
    "StringSet",
    "UNKNOWN",
    "UnaryOperator",
    "Unknown",
    "ValueKind",
    "ValueSetQualifier",
    "cast_qualifier",
    "convert",
    "fold_results",
    "get_error_category",
    "get_operator_library",
    "is_covered",
    "is_subtype",
    "java_string",
    "join",
    "least_upper_bound",
    "value_kind",
]
