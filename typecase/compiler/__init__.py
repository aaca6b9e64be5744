"""
Code generation: accessor specialization and the dispatch generator.
"""

from typecase.compiler.accessors import (
    elt,
    Accessor,
    AccessorEntry,
    AccessorTable,
    ElementAccessRewriter,
    DEFAULT_ACCESSOR_TABLE,
    GENERIC_ACCESSOR,
    lookup_accessor,
)
from typecase.compiler.dispatch_codegen import (
    DispatchGenerator,
    DispatchBranch,
    GeneratedDispatch,
)

__all__ = [
    'elt',
    'Accessor',
    'AccessorEntry',
    'AccessorTable',
    'ElementAccessRewriter',
    'DEFAULT_ACCESSOR_TABLE',
    'GENERIC_ACCESSOR',
    'lookup_accessor',
    'DispatchGenerator',
    'DispatchBranch',
    'GeneratedDispatch',
]
