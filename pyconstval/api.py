"""Public API for PyConstVal."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from pyconstval.analysis.cache import PropagationCache
from pyconstval.analysis.checks import Issue, check_all
from pyconstval.analysis.diagnostics import DiagnosticSink
from pyconstval.analysis.evaluator import TreeEvaluator
from pyconstval.analysis.invocation import InvocationCapability
from pyconstval.analysis.nodes import NodeArena
from pyconstval.config import ConstValConfig, load_config
from pyconstval.core.lattice import is_subtype as _is_subtype
from pyconstval.core.lattice import least_upper_bound
from pyconstval.core.qualifiers import Qualifier
from pyconstval.logging import configure_logging
from pyconstval.models.java_lang import java_lang_registry


def create_evaluator(
    arena: NodeArena,
    registry: InvocationCapability | None = None,
    config: ConstValConfig | None = None,
    sink: DiagnosticSink | None = None,
    *,
    default_policy: Qualifier | None = None,
) -> TreeEvaluator:
    """
    Create an evaluator for one analysis pass over an arena.
    Args:
        arena: Nodes to evaluate
        registry: Invocation capability for analyzable calls; the java.lang
                  models when omitted
        config: Settings (defaults when omitted)
        sink: Receiver of diagnostics (discarded when omitted)
        default_policy: Qualifier for nodes no rule gives a value
    Returns:
        A TreeEvaluator with a fresh propagation cache
    Example:
        >>> from pyconstval import TreeBuilder, create_evaluator
        >>> b = TreeBuilder()
        >>> total = b.binary("+", b.literal(1), b.literal(2))
        >>> create_evaluator(b.arena).evaluate(total)
        IntSet{3}
    """
    config = config or ConstValConfig()
    if registry is None:
        registry = java_lang_registry(config.evaluation.byte_charset)
    return TreeEvaluator(
        arena,
        invoker=registry,
        sink=sink,
        default_policy=default_policy,
        cache=PropagationCache(config.limits.cache_capacity),
        config=config,
    )


def evaluate(
    arena: NodeArena,
    node: int,
    registry: InvocationCapability | None = None,
    config: ConstValConfig | None = None,
    sink: DiagnosticSink | None = None,
) -> Qualifier:
    """
    Qualifier of a single node.
    Args:
        arena: Nodes the node belongs to
        node: Arena index of the node
        registry: Invocation capability (see create_evaluator)
        config: Settings
        sink: Receiver of diagnostics
    Returns:
        The node's qualifier, never raising for evaluation failures
    """
    return create_evaluator(arena, registry, config, sink).evaluate(node)


def evaluate_all(
    arena: NodeArena,
    nodes: Sequence[int] | None = None,
    registry: InvocationCapability | None = None,
    config: ConstValConfig | None = None,
    sink: DiagnosticSink | None = None,
) -> dict[int, Qualifier]:
    """
    Qualifiers of several nodes sharing one cache.
    Args:
        arena: Nodes to evaluate
        nodes: Arena indices to evaluate (every node when omitted)
        registry: Invocation capability (see create_evaluator)
        config: Settings
        sink: Receiver of diagnostics
    Returns:
        Mapping of node index to qualifier
    """
    return create_evaluator(arena, registry, config, sink).evaluate_all(nodes)


def check(
    arena: NodeArena,
    registry: InvocationCapability | None = None,
    config: ConstValConfig | None = None,
) -> list[Issue]:
    """Run the division and cast checks over every node of an arena."""
    return check_all(create_evaluator(arena, registry, config))


def join(a: Qualifier, b: Qualifier) -> Qualifier | None:
    """Least upper bound of two qualifiers."""
    return least_upper_bound(a, b)


def is_subtype(a: Qualifier, b: Qualifier) -> bool:
    """Check whether a is at least as precise as b."""
    return _is_subtype(a, b)


def configure(config_path: Path | None = None, start_dir: Path | None = None) -> ConstValConfig:
    """Load configuration and set up the global logger from its output section."""
    config = load_config(config_path, start_dir)
    output = config.output
    configure_logging(
        level=output.level,
        color=output.color,
        file_path=Path(output.log_file) if output.log_file else None,
    )
    return config


__all__ = [
    "create_evaluator",
    "evaluate",
    "evaluate_all",
    "check",
    "join",
    "is_subtype",
    "configure",
]
