"""Tree evaluator: the qualifier of every expression node.
evaluate() is total. Every failure met while computing a node's value set
becomes Unknown (or the default qualifier) plus, where the failure deserves
attention, a diagnostic. Operator nodes are memoized in the propagation
cache; call and constructor nodes expand the cartesian product of their
operands' value sets and delegate each combination to the invocation
capability.
"""

from __future__ import annotations

import itertools
import math
from collections.abc import Callable, Generator, Sequence
from typing import Any

from pyconstval.analysis.cache import PropagationCache
from pyconstval.analysis.diagnostics import (
    Diagnostic,
    DiagnosticKind,
    DiagnosticSink,
    NullSink,
)
from pyconstval.analysis.invocation import InvocationCapability, ResolvedCallable
from pyconstval.analysis.nodes import (
    Binary,
    CallableDecl,
    Cast,
    ExprNode,
    FieldAccess,
    Identifier,
    Literal,
    MethodCall,
    NewArray,
    NewClass,
    NodeArena,
    Unary,
    ValueAnnotation,
)
from pyconstval.config import ConstValConfig
from pyconstval.core.coercion import cast_qualifier, cast_values, to_char
from pyconstval.core.exceptions import (
    CapacityError,
    ClassNotFoundError,
    CoercionError,
    ConstValError,
    InvocationError,
)
from pyconstval.core.folding import fold_results
from pyconstval.core.lattice import QualifierHierarchy
from pyconstval.core.operators import OperatorLibrary, get_operator_library
from pyconstval.core.qualifiers import (
    BOTTOM,
    UNKNOWN,
    ArrayLenSet,
    BoolSet,
    IntSet,
    Qualifier,
    StringSet,
    declared,
)
from pyconstval.core.types import ValueKind, is_covered, value_kind
from pyconstval.logging import LogLevel, get_logger

_TEXT_ARRAYS = ("byte[]", "char[]")

# A handler either returns its qualifier or yields operand indices, receives
# their qualifiers and returns its own.
Steps = Generator[int, Qualifier, Qualifier]
Outcome = Qualifier | Steps


class TreeEvaluator:
    """Computes qualifiers for the nodes of one arena.
    Args:
        arena: Nodes of the analysis pass
        invoker: Capability running analyzable callables; calls are Unknown without one
        operators: Operator library (the shared standard one by default)
        sink: Receiver of diagnostics
        default_policy: Qualifier used when no rule gives a value
        cache: Propagation cache; a fresh one per evaluator by default
        config: Limits and evaluation settings
    """

    def __init__(
        self,
        arena: NodeArena,
        invoker: InvocationCapability | None = None,
        operators: OperatorLibrary | None = None,
        sink: DiagnosticSink | None = None,
        default_policy: Qualifier | None = None,
        cache: PropagationCache | None = None,
        config: ConstValConfig | None = None,
    ):
        self.config = config or ConstValConfig()
        self.arena = arena
        self.invoker = invoker
        self.operators = operators or get_operator_library()
        self.sink = sink or NullSink()
        if default_policy is None:
            policy = self.config.evaluation.default_qualifier
            default_policy = BOTTOM if policy == "bottom" else UNKNOWN
        self.default_policy = default_policy
        if cache is None:
            cache = PropagationCache(self.config.limits.cache_capacity)
        self.cache = cache
        self.hierarchy = QualifierHierarchy()
        self.charset = self.config.evaluation.byte_charset
        self._in_progress: set[int] = set()
        self._logger = get_logger()
        self._handlers: dict[type, Callable[[int, Any], Outcome]] = {
            Literal: self._literal,
            Identifier: self._identifier,
            Cast: self._cast,
            Unary: self._unary,
            Binary: self._binary,
            FieldAccess: self._field_access,
            MethodCall: self._method_call,
            NewClass: self._new_class,
            NewArray: self._new_array,
        }

    def evaluate(self, index: int) -> Qualifier:
        """Qualifier of the node at an arena index.
        Operands are evaluated from an explicit stack of suspended handlers,
        so the depth of the tree never grows the interpreter's call stack.
        """
        result = self._settled(index)
        if result is not None:
            return result
        stack = [(index, self._start(index))]
        try:
            while stack:
                current, steps = stack[-1]
                try:
                    operand = steps.send(result)
                except StopIteration as done:
                    stack.pop()
                    result = self._finish(current, done.value)
                    continue
                result = self._settled(operand)
                if result is None:
                    stack.append((operand, self._start(operand)))
        finally:
            for pending, steps in stack:
                steps.close()
                self._in_progress.discard(pending)
        return result

    def evaluate_all(self, indices: Sequence[int] | None = None) -> dict[int, Qualifier]:
        """Qualifiers of several nodes, every node of the arena by default."""
        if indices is None:
            indices = [i for i, _ in self.arena]
        return {i: self.evaluate(i) for i in indices}

    def join(self, a: Qualifier, b: Qualifier) -> Qualifier | None:
        return self.hierarchy.least_upper_bound(a, b)

    def is_subtype(self, a: Qualifier, b: Qualifier) -> bool:
        return self.hierarchy.is_subtype(a, b)

    def dimension_lengths(self, index: int) -> list[Qualifier]:
        """Length qualifier of each dimension of a new-array expression, outermost first."""
        node = self.arena.get(index)
        if not isinstance(node, NewArray):
            raise TypeError(f"node {index} is not a new-array expression")
        return [self._length_of(self.evaluate(d)) for d in node.dimensions]

    def stats(self) -> dict[str, Any]:
        return {
            "evaluations": self._logger.get_count("evaluator.evaluations"),
            "cache": self.cache.stats(),
        }

    def _settled(self, index: int) -> Qualifier | None:
        """Qualifier known without running a handler, None otherwise."""
        node = self.arena.get(index)
        if index in self._in_progress:
            self._trace(f"node {index} re-entered, Unknown")
            return UNKNOWN
        if PropagationCache.accepts(node):
            cached = self.cache.lookup(index)
            if cached is not None:
                self._logger.count("evaluator.cache_hits")
                self._trace(f"node {index} cached: {cached!r}")
                return cached
        return None

    def _start(self, index: int) -> Steps:
        self._in_progress.add(index)
        return self._evaluate_node(index, self.arena.get(index))

    def _finish(self, index: int, result: Qualifier) -> Qualifier:
        node = self.arena.get(index)
        self._in_progress.discard(index)
        self.cache.store(index, node, result)
        self._logger.count("evaluator.evaluations")
        self._trace(f"node {index} {type(node).__name__}: {result!r}")
        return result

    def _evaluate_node(self, index: int, node: ExprNode) -> Steps:
        # Array-typed nodes carry length sets whatever their element type.
        if not (node.type.is_array or is_covered(node.type)):
            return UNKNOWN
        handler = self._handlers.get(type(node))
        if handler is None:
            return self.default_policy
        outcome = handler(index, node)
        if isinstance(outcome, Generator):
            outcome = yield from outcome
        return outcome

    def _trace(self, message: str) -> None:
        if self._logger.enabled_for(LogLevel.TRACE):
            self._logger.trace(message, category="evaluator")

    def _report(self, kind: DiagnosticKind, index: int, *context: Any, message: str = "") -> None:
        self.sink.report(Diagnostic(kind, index, tuple(context), message))

    def _fold(self, node: ExprNode, results: Sequence[Any]) -> Qualifier:
        folded = fold_results(node.type, results, self.charset)
        if folded.is_unknown and len(results) > 0:
            self._trace(f"{len(results)} results collapsed to Unknown")
        return folded

    def _literal(self, index: int, node: Literal) -> Qualifier:
        return self._fold(node, [node.value])

    def _identifier(self, index: int, node: Identifier) -> Qualifier:
        decl = node.declared
        if decl is None:
            return self.default_policy
        if isinstance(decl, ValueAnnotation):
            try:
                return declared(decl.variant, decl.values)
            except CapacityError as e:
                self._report(DiagnosticKind.TOO_MANY_VALUES, index, node.name, message=e.message)
                return UNKNOWN
        return decl

    def _cast(self, index: int, node: Cast) -> Steps:
        operand = yield node.expression
        if operand.is_unknown or operand.is_bottom:
            return operand
        target = value_kind(node.type)
        if target is None:
            return operand if isinstance(operand, ArrayLenSet) else UNKNOWN
        source = value_kind(self.arena.get(node.expression).type)
        return cast_qualifier(operand, target, source)

    def _values_as(self, q: Qualifier, kind: ValueKind, child: int) -> list[Any]:
        return cast_values(q, kind, value_kind(self.arena.get(child).type))

    def _unary(self, index: int, node: Unary) -> Steps:
        operand = yield node.operand
        if operand.is_non_value:
            return UNKNOWN
        kind = value_kind(node.type)
        if kind is None:
            return UNKNOWN
        op = node.operator
        try:
            self.operators.lookup_unary(op, kind)
            values = self._values_as(operand, kind, node.operand)
            results = [self.operators.apply_unary(op, kind, v) for v in values]
        except ConstValError as e:
            self._report(
                DiagnosticKind.UNARY_OPERATOR_FAILED,
                index,
                op.symbol,
                kind.name.lower(),
                message=e.message,
            )
            return UNKNOWN
        return self._fold(node, results)

    def _comparison_kind(self, left: Qualifier, right: Qualifier) -> ValueKind:
        if isinstance(left, StringSet) or isinstance(right, StringSet):
            return ValueKind.STRING
        if isinstance(left, BoolSet) or isinstance(right, BoolSet):
            return ValueKind.BOOLEAN
        return ValueKind.DOUBLE

    def _binary(self, index: int, node: Binary) -> Steps:
        left = yield node.left
        right = yield node.right
        if left.is_non_value or right.is_non_value:
            return UNKNOWN
        op = node.operator
        comparison = op.is_comparison
        if comparison:
            kind = self._comparison_kind(left, right)
        else:
            kind = value_kind(node.type)
            if kind is None:
                return UNKNOWN
        try:
            self.operators.lookup_binary(op, kind)
            lhs = self._values_as(left, kind, node.left)
            rhs = self._values_as(right, kind, node.right)
            results = [
                self.operators.apply_binary(op, kind, a, b) for a, b in itertools.product(lhs, rhs)
            ]
        except ConstValError as e:
            self._report(
                DiagnosticKind.BINARY_OPERATOR_FAILED,
                index,
                op.symbol,
                kind.name.lower(),
                message=e.message,
            )
            return UNKNOWN
        if comparison:
            return fold_results(ValueKind.BOOLEAN, results)
        return self._fold(node, results)

    def _length_of(self, q: Qualifier) -> Qualifier:
        if not isinstance(q, IntSet):
            return UNKNOWN
        return ArrayLenSet.of(v for v in q.values if v >= 0)

    def _new_array(self, index: int, node: NewArray) -> Steps:
        if node.dimensions:
            first = yield node.dimensions[0]
            return self._length_of(first)
        if node.initializers is None:
            return UNKNOWN
        if node.type.name in _TEXT_ARRAYS:
            text = self._literal_text(node.initializers)
            if text is not None:
                return StringSet.of([text])
        return ArrayLenSet.of([len(node.initializers)])

    def _literal_text(self, initializers: Sequence[int]) -> str | None:
        """String spelled by integer or character literals, None otherwise."""
        chars = []
        for i in initializers:
            element = self.arena.get(i)
            if not isinstance(element, Literal):
                return None
            value = element.value
            if isinstance(value, str) and len(value) == 1:
                chars.append(value)
            elif isinstance(value, int) and not isinstance(value, bool):
                chars.append(chr(to_char(value)))
            else:
                return None
        return "".join(chars)

    def _field_access(self, index: int, node: FieldAccess) -> Steps:
        if node.name == "class":
            return UNKNOWN
        field = node.field
        if field is None:
            if node.name == "length" and node.receiver is not None:
                receiver = yield node.receiver
                if isinstance(receiver, ArrayLenSet):
                    return IntSet.of(receiver.values)
                return UNKNOWN
            return self.default_policy
        if field.is_compile_time_constant:
            return fold_results(field.type, [field.constant], self.charset)
        if field.is_static and field.is_final and self.invoker is not None:
            return self._static_field(index, node)
        return self.default_policy

    def _static_field(self, index: int, node: FieldAccess) -> Qualifier:
        field = node.field
        try:
            value = self.invoker.read_field(field.owner, field.name)
        except ClassNotFoundError as e:
            self._report(DiagnosticKind.CLASS_NOT_FOUND, index, e.class_name)
            return self.default_policy
        except Exception as e:
            # Missing fields and failing static initializers alike.
            self._report(
                DiagnosticKind.FIELD_ACCESS_FAILED, index, field.name, field.owner, message=str(e)
            )
            return self.default_policy
        return fold_results(field.type, [value], self.charset)

    def _argument_values(
        self,
        decl: CallableDecl,
        arguments: Sequence[int],
    ) -> Generator[int, Qualifier, list[tuple[Any, ...]] | None]:
        """Concrete value choices of each argument, None when any is not known."""
        choices = []
        for arg, param in zip(arguments, decl.param_types):
            q = yield arg
            if q.is_non_value:
                return None
            param_kind = value_kind(param)
            if param_kind is None:
                choices.append(q.values)
                continue
            try:
                choices.append(tuple(self._values_as(q, param_kind, arg)))
            except CoercionError:
                return None
        return choices

    def _expand(self, choices: list[tuple[Any, ...]]) -> Any:
        combinations = math.prod(len(c) for c in choices)
        if combinations > self.config.limits.max_invocations:
            self._trace(f"{combinations} combinations exceed max_invocations")
            return None
        return itertools.product(*choices)

    def _invoke_all(
        self,
        resolved: ResolvedCallable,
        combinations: Any,
        has_receiver: bool,
        on_failure: Callable[[InvocationError], None],
    ) -> list[Any]:
        results = []
        for combination in combinations:
            receiver = combination[0] if has_receiver else None
            args = combination[1:] if has_receiver else combination
            try:
                results.append(self.invoker.invoke(resolved, receiver, args))
            except InvocationError as e:
                on_failure(e)
            except Exception as e:
                on_failure(InvocationError(str(resolved.decl), e))
        return results

    def _method_call(self, index: int, node: MethodCall) -> Steps:
        decl = node.method
        if not decl.statically_executable or self.invoker is None:
            return UNKNOWN
        if len(node.arguments) != len(decl.param_types):
            return UNKNOWN
        choices = yield from self._argument_values(decl, node.arguments)
        if choices is None:
            return UNKNOWN
        has_receiver = not decl.is_static
        if has_receiver:
            if node.receiver is None:
                return UNKNOWN
            receiver = yield node.receiver
            if receiver.is_non_value:
                return UNKNOWN
            choices.insert(0, receiver.values)
        try:
            resolved = self.invoker.resolve(decl)
        except ClassNotFoundError as e:
            self._report(DiagnosticKind.CLASS_NOT_FOUND, index, e.class_name)
            return UNKNOWN
        except Exception as e:
            params = ", ".join(decl.signature)
            if decl.owner:
                self._report(
                    DiagnosticKind.METHOD_NOT_FOUND_IN_CLASS, index, decl.name, params, decl.owner,
                    message=str(e),
                )
            else:
                self._report(
                    DiagnosticKind.METHOD_NOT_FOUND, index, decl.name, params, message=str(e)
                )
            return UNKNOWN
        combinations = self._expand(choices)
        if combinations is None:
            return UNKNOWN

        def on_failure(e: InvocationError) -> None:
            if e.cause is not None:
                self._report(DiagnosticKind.METHOD_EXCEPTION, index, decl, repr(e.cause))
            else:
                self._report(DiagnosticKind.METHOD_FAILED, index, decl, message=e.message)

        results = self._invoke_all(resolved, combinations, has_receiver, on_failure)
        return self._fold(node, results)

    def _new_class(self, index: int, node: NewClass) -> Steps:
        decl = node.constructor
        if not self.config.evaluation.analyze_constructors:
            return UNKNOWN
        if not decl.statically_executable or self.invoker is None:
            return UNKNOWN
        if len(node.arguments) != len(decl.param_types):
            return UNKNOWN
        choices = yield from self._argument_values(decl, node.arguments)
        if choices is None:
            return UNKNOWN
        try:
            resolved = self.invoker.resolve(decl)
        except Exception as e:
            self._report(
                DiagnosticKind.CONSTRUCTOR_FAILED,
                index,
                node.type,
                ", ".join(decl.signature),
                message=str(e),
            )
            return UNKNOWN
        combinations = self._expand(choices)
        if combinations is None:
            return UNKNOWN

        def on_failure(e: InvocationError) -> None:
            self._report(DiagnosticKind.CONSTRUCTOR_INVOCATION_FAILED, index, decl, message=e.message)

        results = self._invoke_all(resolved, combinations, False, on_failure)
        return self._fold(node, results)


__all__ = ["TreeEvaluator"]
