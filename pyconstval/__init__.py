"""PyConstVal: a constant-value abstract interpreter for expression trees.
PyConstVal computes, for each expression of a program, the finite set of
concrete values it can take, or reports that the set is unknown:
- Literals, casts and unary/binary operators with Java semantics
- Array lengths and compile-time constant fields
- Calls to analyzable methods and constructors, run on every combination
  of known argument values
Example:
    >>> from pyconstval import TreeBuilder, evaluate
    >>> b = TreeBuilder()
    >>> x = b.binary("+", b.literal(1), b.literal(10))
    >>> evaluate(b.arena, x)
    IntSet{11}
"""

from pyconstval.analysis.checks import Issue, IssueKind
from pyconstval.analysis.diagnostics import CollectingSink, Diagnostic, DiagnosticKind
from pyconstval.analysis.evaluator import TreeEvaluator
from pyconstval.analysis.invocation import CallableRegistry, RegistryBuilder
from pyconstval.analysis.nodes import CallableDecl, FieldDecl, NodeArena, TreeBuilder
from pyconstval.api import (
    check,
    configure,
    create_evaluator,
    evaluate,
    evaluate_all,
    is_subtype,
    join,
)
from pyconstval.core.qualifiers import (
    BOTTOM,
    MAX_VALUES,
    UNKNOWN,
    ArrayLenSet,
    BoolSet,
    DoubleSet,
    IntSet,
    Qualifier,
    StringSet,
)
from pyconstval.models.java_lang import java_lang_registry

__version__ = "0.1.0"
__author__ = "PyConstVal Team"
from pyconstval.config import ConstValConfig, load_config
from pyconstval.logging import LogLevel, configure_logging, get_logger

__all__ = [
    "ArrayLenSet",
    "BOTTOM",
    "BoolSet",
    "CallableDecl",
    "CallableRegistry",
    "CollectingSink",
    "ConstValConfig",
    "Diagnostic",
    "DiagnosticKind",
    "DoubleSet",
    "FieldDecl",
    "IntSet",
    "Issue",
    "IssueKind",
    "LogLevel",
    "MAX_VALUES",
    "NodeArena",
    "Qualifier",
    "RegistryBuilder",
    "StringSet",
    "TreeBuilder",
    "TreeEvaluator",
    "UNKNOWN",
    "check",
    "configure",
    "configure_logging",
    "create_evaluator",
    "evaluate",
    "evaluate_all",
    "get_logger",
    "is_subtype",
    "java_lang_registry",
    "join",
    "load_config",
]
