"""
Type Set Simplification
=======================

Reduces a candidate list of type descriptors to the minimal, ordered list
of dispatch branches with the same union:

1. Deduplicate: drop entries equivalent to an earlier survivor.
2. Specificity sort: stable topological sort, strict subtypes first.
3. Shadow removal: drop entries exactly equal to the union of the
   entries retained before them.

Example:
    >>> oracle = HierarchyOracle({'Fixnum': ['Integer']})
    >>> simplify(['Integer', 'Fixnum', 'String'], oracle)
    ['Fixnum', 'Integer', 'String']

The exhaustiveness check then compares the simplified union against the
declared overall type and, where the oracle cannot prove equality,
appends the overall type as a catch-all branch.
"""

import logging
from typing import Any, List, Sequence

from typecase.analysis.oracle import BOTTOM, DEFAULT_ORACLE, SubtypeOracle, union
from typecase.errors import NotASubtypeError, OracleInvariantError
from typecase.utils.helpers import format_type

logger = logging.getLogger(__name__)


def deduplicate(types: Sequence[Any], oracle: SubtypeOracle = DEFAULT_ORACLE) -> List[Any]:
    """Keep the first member of each equivalence class, in input order."""
    distinct: List[Any] = []
    for t in types:
        if not any(oracle.is_equivalent(t, kept) for kept in distinct):
            distinct.append(t)
    return distinct


def specificity_sort(types: Sequence[Any], oracle: SubtypeOracle = DEFAULT_ORACLE) -> List[Any]:
    """
    Stable sort with "proper subtype comes first".

    Each step takes the earliest remaining entry that has no proper
    subtype left behind it, so unrelated entries keep their input order.
    A step with no such entry means ``proper_subtype`` has a cycle.
    """
    remaining = list(types)
    ordered: List[Any] = []
    while remaining:
        for i, candidate in enumerate(remaining):
            if not any(
                oracle.proper_subtype(other, candidate)
                for j, other in enumerate(remaining) if j != i
            ):
                ordered.append(remaining.pop(i))
                break
        else:
            raise OracleInvariantError(
                "subtype oracle is cyclic: no most-specific type among "
                + ', '.join(format_type(t) for t in remaining),
                remaining,
            )
    verify_specificity_order(ordered, oracle)
    return ordered


def verify_specificity_order(types: Sequence[Any], oracle: SubtypeOracle = DEFAULT_ORACLE) -> None:
    """Raise ``OracleInvariantError`` if a later entry is a proper subtype of an earlier one."""
    for i, earlier in enumerate(types):
        for later in types[i + 1:]:
            if oracle.proper_subtype(later, earlier):
                raise OracleInvariantError(
                    f"specificity order violated: {format_type(later)} is a "
                    f"proper subtype of {format_type(earlier)} but sorts after it",
                    (earlier, later),
                )


def remove_shadowed(types: Sequence[Any], oracle: SubtypeOracle = DEFAULT_ORACLE) -> List[Any]:
    """
    Drop entries that exactly equal the union of those retained before them.

    The test is equivalence, not inclusion: an entry strictly larger than
    the accumulated union adds members and is kept as a broader branch.
    """
    kept: List[Any] = []
    covered = BOTTOM
    for t in types:
        if oracle.is_equivalent(t, covered):
            logger.debug(f"Dropped {format_type(t)}: equal to {format_type(covered)}")
            continue
        kept.append(t)
        covered = union(covered, t)
    return kept


def simplify(types: Sequence[Any], oracle: SubtypeOracle = DEFAULT_ORACLE) -> List[Any]:
    """
    Minimal specificity-ordered list with the same union as ``types``.

    Pure and idempotent; no two outputs are equivalent.
    """
    distinct = deduplicate(types, oracle)
    ordered = specificity_sort(distinct, oracle)
    simplified = remove_shadowed(ordered, oracle)
    logger.debug(
        f"Simplified {len(types)} candidate(s) to "
        f"[{', '.join(format_type(t) for t in simplified)}]"
    )
    return simplified


# ============================================================================
# Exhaustiveness
# ============================================================================

def check_exhaustive(
    overall: Any,
    subtypes: Sequence[Any],
    oracle: SubtypeOracle = DEFAULT_ORACLE,
) -> bool:
    """
    Whether ``subtypes`` jointly cover exactly ``overall``.

    Raises ``NotASubtypeError`` for the first entry outside ``overall``.
    """
    for t in subtypes:
        if not oracle.is_subtype(t, overall):
            raise NotASubtypeError(t, overall)
    return oracle.is_equivalent(overall, union(*subtypes))


def ensure_exhaustive(
    overall: Any,
    subtypes: Sequence[Any],
    oracle: SubtypeOracle = DEFAULT_ORACLE,
) -> List[Any]:
    """``subtypes``, with ``overall`` appended as catch-all when not exhaustive."""
    branches = list(subtypes)
    if not check_exhaustive(overall, branches, oracle):
        logger.debug(f"Appended catch-all branch {format_type(overall)}")
        branches.append(overall)
    return branches
