"""
Type analysis: the subtype oracle and the type-set algorithms built on it.
"""

from typecase.analysis.oracle import (
    TOP,
    BOTTOM,
    TypeUnion,
    union,
    SubtypeOracle,
    ClassOracle,
    HierarchyOracle,
    DEFAULT_ORACLE,
)
from typecase.analysis.type_set import (
    deduplicate,
    specificity_sort,
    verify_specificity_order,
    remove_shadowed,
    simplify,
    check_exhaustive,
    ensure_exhaustive,
)

__all__ = [
    'TOP',
    'BOTTOM',
    'TypeUnion',
    'union',
    'SubtypeOracle',
    'ClassOracle',
    'HierarchyOracle',
    'DEFAULT_ORACLE',
    'deduplicate',
    'specificity_sort',
    'verify_specificity_order',
    'remove_shadowed',
    'simplify',
    'check_exhaustive',
    'ensure_exhaustive',
]
