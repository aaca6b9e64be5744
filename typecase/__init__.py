"""
typecase: Type-Set Simplification and Specializing Dispatch
===========================================================

Hot loops over containers that come in several representations (text vs.
byte strings, lists vs. tuples vs. numpy arrays) pay for a type dispatch
on every element access. typecase moves that dispatch to code-generation
time: a function body is duplicated once per concrete representation,
each copy guarded by a narrowing ``isinstance`` branch and with generic
element access rewritten to the fastest accessor for that representation.

Core Components:
    - analysis: subtype oracle, type-set simplification, exhaustiveness
    - compiler: accessor specialization table, dispatch code generator
    - optimization: branch resolution and dispatch decorators
    - runtime: value type assertions with recovery callbacks

Usage:
    >>> from typecase import string_dispatch, elt
    >>> @string_dispatch('s')
    ... def count_char(s, c):
    ...     n = 0
    ...     for i in range(len(s)):
    ...         if elt(s, i) == c:
    ...             n += 1
    ...     return n
    >>> count_char('banana', 'a')
    3
"""

__version__ = "1.0.0"

from typecase.errors import (
    TypecaseError,
    OracleInvariantError,
    NotASubtypeError,
    UnmatchedTypeError,
    MissingFallbackError,
    SpecializationError,
    TypeAssertionError,
)
from typecase.analysis import (
    TOP,
    BOTTOM,
    TypeUnion,
    union,
    SubtypeOracle,
    ClassOracle,
    HierarchyOracle,
    DEFAULT_ORACLE,
    simplify,
    check_exhaustive,
    ensure_exhaustive,
)
from typecase.compiler import (
    elt,
    Accessor,
    AccessorTable,
    DEFAULT_ACCESSOR_TABLE,
    lookup_accessor,
    DispatchGenerator,
    DispatchBranch,
    GeneratedDispatch,
)
from typecase.optimization import (
    STRING_TYPE,
    VECTOR_TYPE,
    TypeDispatcher,
    build_dispatch,
    resolve_branch_types,
    type_dispatch,
    string_dispatch,
    vector_dispatch,
)
from typecase.runtime import TypeCheckFailure, check_type, assert_type
