"""
Type Dispatch
=============

Front end of the pipeline. Given an umbrella type, the representations
that always deserve a fast path, and caller-supplied extras, it resolves
the branch list and wraps a function body in a dispatch on one parameter:

    candidates = well_known + extras
    branches   = ensure_exhaustive(overall, simplify(candidates))
    function   = DispatchGenerator.specialize_function(func, var, branches)

Two umbrellas are predefined:

- ``STRING_TYPE`` (str, bytes, bytearray): fast paths for ``str`` and
  ``bytes`` are always emitted.
- ``VECTOR_TYPE`` (any ``Sequence`` or ``numpy.ndarray``): a fast path for
  ``list`` is always emitted.

Usage:
    >>> @string_dispatch('s')
    ... def count_spaces(s):
    ...     n = 0
    ...     for i in range(len(s)):
    ...         if elt(s, i) in (' ', 32):
    ...             n += 1
    ...     return n
    >>> count_spaces('a b c'), count_spaces(b'a b')
    (2, 1)
"""

import ast
import logging
from collections.abc import Sequence as SequenceABC
from typing import Any, Callable, List, Optional, Sequence, Union

import numpy

from typecase.analysis.oracle import DEFAULT_ORACLE, SubtypeOracle, union
from typecase.analysis.type_set import ensure_exhaustive, simplify
from typecase.compiler.accessors import AccessorTable
from typecase.compiler.dispatch_codegen import DispatchGenerator, GeneratedDispatch

logger = logging.getLogger(__name__)


STRING_TYPE = union(str, bytes, bytearray)
STRING_REPRESENTATIONS = (str, bytes)

VECTOR_TYPE = union(SequenceABC, numpy.ndarray)
VECTOR_REPRESENTATIONS = (list,)


def resolve_branch_types(
    overall: Any,
    well_known: Sequence[Any],
    extras: Sequence[Any] = (),
    oracle: SubtypeOracle = DEFAULT_ORACLE,
) -> List[Any]:
    """Simplified, exhaustive branch list for ``well_known + extras``."""
    candidates = list(well_known) + list(extras)
    return ensure_exhaustive(overall, simplify(candidates, oracle), oracle)


def build_dispatch(
    overall: Any,
    well_known: Sequence[Any],
    extras: Sequence[Any],
    var: str,
    body: Union[str, Sequence[ast.stmt]],
    generator: Optional[DispatchGenerator] = None,
) -> GeneratedDispatch:
    """Resolve the branch list and generate the dispatch chain for ``body``."""
    generator = generator or DispatchGenerator()
    types = resolve_branch_types(overall, well_known, extras, generator.oracle)
    return generator.generate(var, types, body)


class TypeDispatcher:
    """
    Decorator factory wrapping function bodies in a type dispatch.

    Usage:
        >>> dispatcher = TypeDispatcher()
        >>> @dispatcher.vector_dispatch('v', tuple)
        ... def total(v):
        ...     acc = 0
        ...     for i in range(len(v)):
        ...         acc += elt(v, i)
        ...     return acc
        >>> total.__typecase_branches__
        (<class 'list'>, <class 'tuple'>, Union[collections.abc.Sequence, numpy.ndarray])
    """

    def __init__(
        self,
        oracle: SubtypeOracle = DEFAULT_ORACLE,
        table: Optional[AccessorTable] = None,
        generator: Optional[DispatchGenerator] = None,
    ):
        self.generator = generator or DispatchGenerator(oracle=oracle, table=table)
        self.oracle = self.generator.oracle

    def dispatch(
        self,
        var: str,
        overall: Any,
        well_known: Sequence[Any] = (),
        extras: Sequence[Any] = (),
    ) -> Callable[[Callable], Callable]:
        """Decorator dispatching parameter ``var`` over subtypes of ``overall``."""
        types = resolve_branch_types(overall, well_known, extras, self.oracle)

        def decorator(func: Callable) -> Callable:
            logger.debug(f"Dispatching {func.__qualname__} on {var!r}")
            return self.generator.specialize_function(func, var, types)

        return decorator

    def string_dispatch(self, var: str, *extras: Any) -> Callable[[Callable], Callable]:
        return self.dispatch(var, STRING_TYPE, STRING_REPRESENTATIONS, extras)

    def vector_dispatch(self, var: str, *extras: Any) -> Callable[[Callable], Callable]:
        return self.dispatch(var, VECTOR_TYPE, VECTOR_REPRESENTATIONS, extras)


_default_dispatcher = TypeDispatcher()


def type_dispatch(var: str, overall: Any, *extras: Any, well_known: Sequence[Any] = ()):
    """
    Dispatch ``var`` over ``well_known + extras`` within ``overall``.

    Usage:
        @type_dispatch('x', int | float, int, float)
        def scale(x):
            return x * 2
    """
    return _default_dispatcher.dispatch(var, overall, well_known, extras)


def string_dispatch(var: str, *extras: Any):
    """Dispatch a string parameter; ``str`` and ``bytes`` always get a branch."""
    return _default_dispatcher.string_dispatch(var, *extras)


def vector_dispatch(var: str, *extras: Any):
    """Dispatch an indexed-collection parameter; ``list`` always gets a branch."""
    return _default_dispatcher.vector_dispatch(var, *extras)
