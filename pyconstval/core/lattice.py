r"""Join and subtype algebra of the constant-value qualifier lattice.

       Unknown
     /  /  |  \   \
  Int Double Bool String ArrayLen     (each ordered by set inclusion)
     \  \  |  /   /
        Bottom

IntSet and DoubleSet are the only comparable pair of distinct variants: an
IntSet is below a DoubleSet holding each of its integers as a double, and
their join widens the integers to doubles.
"""

from __future__ import annotations

from collections.abc import Iterable

from pyconstval.core.qualifiers import (
    BOTTOM,
    UNKNOWN,
    DoubleSet,
    IntSet,
    Qualifier,
    ValueSetQualifier,
)


def is_subtype(a: Qualifier, b: Qualifier) -> bool:
    """Check a ⊑ b, i.e. a is at least as precise as b."""
    if a == b:
        return True
    if isinstance(a, ValueSetQualifier) and type(a) is type(b):
        return a.keys <= b.keys
    if isinstance(a, IntSet) and isinstance(b, DoubleSet):
        # Per-element equality scan; see DESIGN.md on int/double precision.
        doubles = b.values
        return all(any(float(i) == d for d in doubles) for i in a.values)
    return a.is_bottom or b.is_unknown


def _is_number(q: Qualifier) -> bool:
    return isinstance(q, (IntSet, DoubleSet))


def least_upper_bound(a: Qualifier, b: Qualifier) -> Qualifier | None:
    """Join of two qualifiers, None when they are not both qualifiers."""
    if not isinstance(a, Qualifier) or not isinstance(b, Qualifier):
        return None
    if is_subtype(a, b):
        return b
    if is_subtype(b, a):
        return a
    if type(a) is type(b):
        return a.union(b)
    if not (_is_number(a) and _is_number(b)):
        return UNKNOWN
    ints, doubles = (a, b) if isinstance(a, IntSet) else (b, a)
    return DoubleSet.of([*doubles.values, *(float(i) for i in ints.values)])


join = least_upper_bound


class QualifierHierarchy:
    """The qualifier lattice as handed to an embedding type system."""

    @property
    def top(self) -> Qualifier:
        return UNKNOWN

    @property
    def bottom(self) -> Qualifier:
        return BOTTOM

    def is_subtype(self, a: Qualifier, b: Qualifier) -> bool:
        return is_subtype(a, b)

    def least_upper_bound(self, a: Qualifier, b: Qualifier) -> Qualifier | None:
        return least_upper_bound(a, b)

    join = least_upper_bound

    def join_all(self, qualifiers: Iterable[Qualifier]) -> Qualifier:
        """Join of any number of qualifiers; BOTTOM for none."""
        result: Qualifier = BOTTOM
        for q in qualifiers:
            result = least_upper_bound(result, q)
            if result.is_unknown:
                break
        return result


__all__ = [
    "is_subtype",
    "least_upper_bound",
    "join",
    "QualifierHierarchy",
]
