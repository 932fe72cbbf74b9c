"""Checks that consume computed value sets.
Each check turns the qualifiers of a few nodes into z3 membership
constraints and asks the solver whether a faulty value is possible. An
issue is definite when every value in the sets is faulty.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

import z3

from pyconstval.analysis.nodes import Binary, Cast
from pyconstval.core.operators import BinaryOperator
from pyconstval.core.qualifiers import (
    ArrayLenSet,
    BoolSet,
    DoubleSet,
    IntSet,
    Qualifier,
    StringSet,
)
from pyconstval.core.types import ValueKind, value_kind

if TYPE_CHECKING:
    from pyconstval.analysis.evaluator import TreeEvaluator


class IssueKind(Enum):
    """Types of issues that can be detected."""

    DIVISION_BY_ZERO = auto()
    INDEX_OUT_OF_BOUNDS = auto()
    LOSSY_CAST = auto()


@dataclass
class Issue:
    """Represents a detected issue."""

    kind: IssueKind
    message: str
    node: int
    definite: bool = False
    constraints: list[z3.ExprRef] = field(default_factory=list)
    model: z3.ModelRef | None = None

    def get_counterexample(self) -> dict[str, Any]:
        """Extract the witness values from the model."""
        if self.model is None:
            return {}
        counterexample = {}
        for decl in self.model.decls():
            value = self.model[decl]
            if z3.is_int_value(value):
                counterexample[decl.name()] = value.as_long()
            elif z3.is_rational_value(value):
                counterexample[decl.name()] = float(value.as_fraction())
            elif z3.is_true(value) or z3.is_false(value):
                counterexample[decl.name()] = z3.is_true(value)
            elif z3.is_string_value(value):
                counterexample[decl.name()] = value.as_string()
            else:
                counterexample[decl.name()] = str(value)
        return counterexample

    def format(self) -> str:
        """Format issue for display."""
        certainty = "definite" if self.definite else "possible"
        lines = [f"[{self.kind.name}] {self.message} ({certainty}, node {self.node})"]
        counterexample = self.get_counterexample()
        if counterexample:
            lines.append("  Counterexample:")
            for name, value in sorted(counterexample.items()):
                lines.append(f"    {name} = {value}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.name,
            "message": self.message,
            "node": self.node,
            "definite": self.definite,
            "counterexample": self.get_counterexample(),
        }


def variable(name: str, q: Qualifier) -> z3.ExprRef:
    """A z3 variable of the sort matching a qualifier's elements."""
    if isinstance(q, DoubleSet):
        return z3.Real(name)
    if isinstance(q, BoolSet):
        return z3.Bool(name)
    if isinstance(q, StringSet):
        return z3.String(name)
    return z3.Int(name)


def _decide(
    domain: list[z3.BoolRef],
    fault: z3.BoolRef,
) -> tuple[z3.ModelRef | None, bool]:
    """Model of a faulty value and whether every value is faulty."""
    solver = z3.Solver()
    solver.add(*domain)
    solver.push()
    solver.add(fault)
    if solver.check() != z3.sat:
        return None, False
    model = solver.model()
    solver.pop()
    solver.add(z3.Not(fault))
    return model, solver.check() == z3.unsat


def check_division(evaluator: TreeEvaluator, node: int) -> Issue | None:
    """Integer division or remainder whose divisor may be zero."""
    expr = evaluator.arena.get(node)
    if not isinstance(expr, Binary) or expr.operator not in (
        BinaryOperator.DIVIDE,
        BinaryOperator.REMAINDER,
    ):
        return None
    kind = value_kind(expr.type)
    if kind is None or not kind.is_integral:
        return None
    divisor = evaluator.evaluate(expr.right)
    if not isinstance(divisor, IntSet):
        return None
    d = z3.Int("divisor")
    domain = [divisor.to_z3_constraint(d)]
    model, definite = _decide(domain, d == 0)
    if model is None:
        return None
    return Issue(
        kind=IssueKind.DIVISION_BY_ZERO,
        message=f"{expr.operator.symbol} by zero, divisor {divisor!r}",
        node=node,
        definite=definite,
        constraints=domain + [d == 0],
        model=model,
    )


def check_index(evaluator: TreeEvaluator, index_node: int, array_node: int) -> Issue | None:
    """Array index that may fall outside the array's possible lengths.
    With no known length only negative indices are reported.
    """
    index = evaluator.evaluate(index_node)
    if not isinstance(index, IntSet):
        return None
    lengths = evaluator.evaluate(array_node)
    i = z3.Int("index")
    n = z3.Int("length")
    domain = [index.to_z3_constraint(i)]
    if isinstance(lengths, ArrayLenSet):
        domain.append(lengths.to_z3_constraint(n))
        fault = z3.Or(i < 0, i >= n)
    else:
        domain.append(n >= 0)
        fault = i < 0
    model, definite = _decide(domain, fault)
    if model is None:
        return None
    return Issue(
        kind=IssueKind.INDEX_OUT_OF_BOUNDS,
        message=f"index {index!r} out of bounds for length {lengths!r}",
        node=index_node,
        definite=definite,
        constraints=domain + [fault],
        model=model,
    )


_RANGES = {
    ValueKind.BYTE: (-(2**7), 2**7 - 1),
    ValueKind.SHORT: (-(2**15), 2**15 - 1),
    ValueKind.CHAR: (0, 2**16 - 1),
    ValueKind.INT: (-(2**31), 2**31 - 1),
    ValueKind.LONG: (-(2**63), 2**63 - 1),
}


def check_cast(evaluator: TreeEvaluator, node: int) -> Issue | None:
    """Narrowing cast to an integral type that may change a value."""
    expr = evaluator.arena.get(node)
    if not isinstance(expr, Cast):
        return None
    target = value_kind(expr.type)
    if target not in _RANGES:
        return None
    low, high = _RANGES[target]
    operand = evaluator.evaluate(expr.expression)
    v = variable("value", operand)
    if isinstance(operand, IntSet):
        fault = z3.Or(v < low, v > high)
    elif isinstance(operand, DoubleSet):
        fault = z3.Or(v < low, v > high, v != z3.ToReal(z3.ToInt(v)))
    else:
        return None
    domain = [operand.to_z3_constraint(v)]
    model, definite = _decide(domain, fault)
    if model is None:
        return None
    return Issue(
        kind=IssueKind.LOSSY_CAST,
        message=f"cast of {operand!r} to {expr.type} loses information",
        node=node,
        definite=definite,
        constraints=domain + [fault],
        model=model,
    )


def check_all(evaluator: TreeEvaluator) -> list[Issue]:
    """Division and cast checks over every node of the evaluator's arena."""
    issues = []
    for index, expr in evaluator.arena:
        issue = None
        if isinstance(expr, Binary):
            issue = check_division(evaluator, index)
        elif isinstance(expr, Cast):
            issue = check_cast(evaluator, index)
        if issue is not None:
            issues.append(issue)
    return issues


__all__ = [
    "IssueKind",
    "Issue",
    "variable",
    "check_division",
    "check_index",
    "check_cast",
    "check_all",
]
