"""
Accessor Specialization
=======================

Generic element access is spelled ``elt(seq, i)`` in dispatch bodies. It
works on any container, which makes it the slowest option. Inside a
branch narrowed to a known representation the call is rewritten to the
best accessor for that representation, usually a plain subscript that
CPython's specializing interpreter handles inline.

The table is ordered most-specific first and must end with a universal
entry, so a lookup always succeeds and the first hit is the most
specific applicable accessor:

    str                    -> text index       s[i]
    bytes, bytearray       -> octet index      b[i]
    list, tuple, array,
    numpy.ndarray          -> array index      v[i]
    collections.abc.Sequence -> sequence index v[i]
    TOP                    -> elt(v, i)        (unchanged)
"""

import array
import ast
import itertools
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Tuple

import numpy

from typecase.analysis.oracle import DEFAULT_ORACLE, TOP, SubtypeOracle
from typecase.analysis.type_set import verify_specificity_order
from typecase.errors import MissingFallbackError, OracleInvariantError
from typecase.utils.helpers import format_type


def elt(sequence: Any, index: int) -> Any:
    """
    Element ``index`` of any ordered container.

    Indexable containers are subscripted; other iterables are walked.
    """
    if hasattr(type(sequence), '__getitem__'):
        return sequence[index]
    if index < 0:
        items = list(sequence)
        return items[index]
    for item in itertools.islice(sequence, index, None):
        return item
    raise IndexError(f"index {index} out of range")


@dataclass(frozen=True)
class Accessor:
    """
    An element-access operation.

    ``build(call, target, index)`` returns the expression replacing the
    generic ``call`` node.
    """
    name: str
    build: Callable[[ast.Call, ast.expr, ast.expr], ast.expr]

    def __repr__(self):
        return f"Accessor({self.name})"


def _subscript(call: ast.Call, target: ast.expr, index: ast.expr) -> ast.expr:
    return ast.copy_location(
        ast.Subscript(value=target, slice=index, ctx=ast.Load()), call
    )


def _unchanged(call: ast.Call, target: ast.expr, index: ast.expr) -> ast.expr:
    return call


TEXT_INDEX = Accessor('text_index', _subscript)
OCTET_INDEX = Accessor('octet_index', _subscript)
ARRAY_INDEX = Accessor('array_index', _subscript)
SEQUENCE_INDEX = Accessor('sequence_index', _subscript)
GENERIC_ACCESSOR = Accessor('elt', _unchanged)


@dataclass(frozen=True)
class AccessorEntry:
    type: Any
    accessor: Accessor


class AccessorTable:
    """
    Read-only, specificity-ordered (type, accessor) table.

    Construction validates that the last entry is universal and that no
    entry is a proper subtype of an entry before it.

    Usage:
        >>> table = AccessorTable([(str, TEXT_INDEX), (TOP, GENERIC_ACCESSOR)])
        >>> table.lookup(str)
        Accessor(text_index)
    """

    def __init__(
        self,
        entries: Iterable[Tuple[Any, Accessor]],
        oracle: SubtypeOracle = DEFAULT_ORACLE,
    ):
        self.oracle = oracle
        self.entries: Tuple[AccessorEntry, ...] = tuple(
            AccessorEntry(t, accessor) for t, accessor in entries
        )
        if not self.entries or not oracle.is_universal(self.entries[-1].type):
            raise MissingFallbackError(
                "accessor table must end with an entry for the universal type"
            )
        try:
            verify_specificity_order([e.type for e in self.entries], oracle)
        except OracleInvariantError as e:
            raise OracleInvariantError(f"accessor table is not sorted: {e}", e.types) from e

    def lookup(self, descriptor: Any) -> Accessor:
        """Accessor of the first entry whose type contains ``descriptor``."""
        for entry in self.entries:
            if self.oracle.is_subtype(descriptor, entry.type):
                return entry.accessor
        # Unreachable: the last entry is universal.
        raise MissingFallbackError(f"no accessor for {format_type(descriptor)}")

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


def lookup_accessor(table: AccessorTable, descriptor: Any) -> Accessor:
    return table.lookup(descriptor)


DEFAULT_ACCESSOR_TABLE = AccessorTable([
    (str, TEXT_INDEX),
    (bytes, OCTET_INDEX),
    (bytearray, OCTET_INDEX),
    (list, ARRAY_INDEX),
    (tuple, ARRAY_INDEX),
    (array.array, ARRAY_INDEX),
    (numpy.ndarray, ARRAY_INDEX),
    (Sequence, SEQUENCE_INDEX),
    (TOP, GENERIC_ACCESSOR),
])


class ElementAccessRewriter(ast.NodeTransformer):
    """
    Rewrites ``elt(var, i)`` calls on the narrowed variable.

    Both ``elt(...)`` and attribute spellings such as ``typecase.elt(...)``
    are recognized; calls on other targets are left alone.
    """

    def __init__(self, var: str, accessor: Accessor, names: Iterable[str] = ('elt',), stats: dict = None):
        self.var = var
        self.accessor = accessor
        self.names = frozenset(names)
        self.stats = stats if stats is not None else {}

    def _is_generic_access(self, node: ast.Call) -> bool:
        func = node.func
        if isinstance(func, ast.Name):
            name = func.id
        elif isinstance(func, ast.Attribute):
            name = func.attr
        else:
            return False
        return (
            name in self.names
            and len(node.args) == 2
            and not node.keywords
            and isinstance(node.args[0], ast.Name)
            and node.args[0].id == self.var
        )

    def _binds_var(self, scope: ast.AST) -> bool:
        for node in ast.walk(scope):
            if isinstance(node, ast.arg) and node.arg == self.var:
                return True
            if (isinstance(node, ast.Name) and node.id == self.var
                    and isinstance(node.ctx, (ast.Store, ast.Del))):
                return True
        return False

    def visit_scope(self, node: ast.AST) -> ast.AST:
        # Inside a scope that rebinds the variable it is no longer narrowed.
        if self._binds_var(node):
            return node
        self.generic_visit(node)
        return node

    visit_FunctionDef = visit_AsyncFunctionDef = visit_ClassDef = visit_scope
    visit_Lambda = visit_scope
    visit_ListComp = visit_SetComp = visit_DictComp = visit_GeneratorExp = visit_scope

    def visit_Call(self, node: ast.Call) -> ast.expr:
        self.generic_visit(node)
        if not self._is_generic_access(node):
            return node
        target, index = node.args
        replacement = self.accessor.build(node, target, index)
        if replacement is not node:
            self.stats['accesses_rewritten'] = self.stats.get('accesses_rewritten', 0) + 1
        return replacement
