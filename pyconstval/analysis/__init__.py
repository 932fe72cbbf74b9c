"""Analysis module: evaluating expression trees to value sets.
This module provides:
- The node arena and tree builder
- The tree evaluator and its propagation cache
- Diagnostics reported during evaluation
- The invocation capability for analyzable callables
- Checks consuming the computed value sets
"""

from pyconstval.analysis.cache import LRUCache, PropagationCache
from pyconstval.analysis.checks import (
    Issue,
    IssueKind,
    check_all,
    check_cast,
    check_division,
    check_index,
)
from pyconstval.analysis.diagnostics import (
    CollectingSink,
    Diagnostic,
    DiagnosticKind,
    DiagnosticSink,
    NullSink,
)
from pyconstval.analysis.evaluator import TreeEvaluator
from pyconstval.analysis.invocation import (
    CallableRegistry,
    InvocationCapability,
    RegistryBuilder,
    ResolvedCallable,
)
from pyconstval.analysis.nodes import (
    Binary,
    CallableDecl,
    Cast,
    FieldAccess,
    FieldDecl,
    Identifier,
    Literal,
    MethodCall,
    NewArray,
    NewClass,
    NodeArena,
    TreeBuilder,
    Unary,
    ValueAnnotation,
)

__all__ = [
    "Binary",
    "CallableDecl",
    "CallableRegistry",
    "Cast",
    "CollectingSink",
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticSink",
    "FieldAccess",
    "FieldDecl",
    "Identifier",
    "InvocationCapability",
    "Issue",
    "IssueKind",
    "LRUCache",
    "Literal",
    "MethodCall",
    "NewArray",
    "NewClass",
    "NodeArena",
    "NullSink",
    "PropagationCache",
    "RegistryBuilder",
    "ResolvedCallable",
    "TreeBuilder",
    "TreeEvaluator",
    "Unary",
    "ValueAnnotation",
    "check_all",
    "check_cast",
    "check_division",
    "check_index",
]
