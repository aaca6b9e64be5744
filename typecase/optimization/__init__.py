"""
Dispatch front end: branch resolution for umbrella types and decorators.
"""

from typecase.optimization.type_dispatch import (
    STRING_TYPE,
    STRING_REPRESENTATIONS,
    VECTOR_TYPE,
    VECTOR_REPRESENTATIONS,
    TypeDispatcher,
    build_dispatch,
    resolve_branch_types,
    type_dispatch,
    string_dispatch,
    vector_dispatch,
)

__all__ = [
    'STRING_TYPE',
    'STRING_REPRESENTATIONS',
    'VECTOR_TYPE',
    'VECTOR_REPRESENTATIONS',
    'TypeDispatcher',
    'build_dispatch',
    'resolve_branch_types',
    'type_dispatch',
    'string_dispatch',
    'vector_dispatch',
]
