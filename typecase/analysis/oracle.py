"""
Subtype Oracle
==============

The decision procedure every other component consults. Type descriptors
are opaque tokens; the pipeline never inspects their representation and
only asks the oracle two questions:

    is_subtype(a, b)      a ⊆ b
    is_equivalent(a, b)   a ⊆ b and b ⊆ a

Descriptor Algebra
------------------
    TOP                   the universal type
    ├── TypeUnion(...)    union of descriptors, built with ``union()``
    ├── <atoms>           whatever the host type system names
    └── BOTTOM            the empty type ("no types yet")

Unions and the two sentinels are handled once in ``SubtypeOracle``;
subclasses only decide the relation between two atoms. An atom may
declare an exact decomposition (a sealed type) through ``expand()``, which
lets the oracle prove e.g. ``Integer ≡ Fixnum ∪ Bignum``.

The relation must be a preorder (reflexive, transitive). ``proper_subtype``
is then a strict partial order, which the specificity sort relies on.
"""

import types
import typing
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Tuple, Union

from typecase.errors import SpecializationError
from typecase.utils.helpers import format_type


class Bound(Enum):
    """The two sentinel descriptors of the algebra."""
    TOP = 'TOP'
    BOTTOM = 'BOTTOM'

    def __repr__(self):
        return self.value


TOP = Bound.TOP
BOTTOM = Bound.BOTTOM


@dataclass(frozen=True)
class TypeUnion:
    """
    Union descriptor. Build with ``union()`` rather than directly so that
    nesting is flattened and the sentinels collapse.
    """
    members: Tuple[Any, ...]

    def __repr__(self):
        return f"Union[{', '.join(format_type(m) for m in self.members)}]"


def union(*descriptors: Any) -> Any:
    """
    Union of descriptors.

    ``union()`` is BOTTOM, ``union(t)`` is ``t``, any TOP member makes the
    whole union TOP, BOTTOM members are dropped, nested unions are flattened.
    """
    members = []
    for d in descriptors:
        if d is TOP:
            return TOP
        if d is BOTTOM:
            continue
        if isinstance(d, TypeUnion):
            members.extend(d.members)
        else:
            members.append(d)
    if not members:
        return BOTTOM
    if len(members) == 1:
        return members[0]
    return TypeUnion(tuple(members))


# Runtime matcher: a class, a tuple of classes, or a predicate.
RuntimeTest = Union[type, Tuple[type, ...], Callable[[Any], bool]]


def _never(value: Any) -> bool:
    return False


def is_class_test(test: Any) -> bool:
    if isinstance(test, type):
        return True
    return isinstance(test, tuple) and all(isinstance(t, type) for t in test)


def as_predicate(test: RuntimeTest) -> Callable[[Any], bool]:
    if is_class_test(test):
        return lambda value: isinstance(value, test)
    return test


class SubtypeOracle(ABC):
    """
    Subtype decision procedure over type descriptors.

    Subclasses implement ``atomic_subtype`` and ``atomic_test``; the
    base class lifts them over TOP, BOTTOM and unions.
    """

    @abstractmethod
    def atomic_subtype(self, a: Any, b: Any) -> bool:
        """Subtype relation between two atoms."""

    @abstractmethod
    def atomic_test(self, a: Any) -> RuntimeTest:
        """Runtime matcher for one atom."""

    def expand(self, a: Any) -> Tuple[Any, ...]:
        """Exact decomposition of a sealed atom, or ``()``."""
        return ()

    def is_universal_atom(self, a: Any) -> bool:
        return False

    def normalize(self, a: Any) -> Any:
        """Rewrite host-native spellings into core descriptors."""
        return a

    # ------------------------------------------------------------------
    # Derived relations
    # ------------------------------------------------------------------

    def is_universal(self, a: Any) -> bool:
        a = self.normalize(a)
        if a is TOP:
            return True
        if a is BOTTOM:
            return False
        if isinstance(a, TypeUnion):
            return any(self.is_universal(m) for m in a.members)
        return self.is_universal_atom(a)

    def is_subtype(self, a: Any, b: Any) -> bool:
        a = self.normalize(a)
        b = self.normalize(b)

        if a is BOTTOM or b is TOP:
            return True
        if isinstance(a, TypeUnion):
            return all(self.is_subtype(m, b) for m in a.members)
        if a is TOP:
            return self.is_universal(b)
        if b is BOTTOM:
            return False
        if isinstance(b, TypeUnion):
            if any(self.is_subtype(a, m) for m in b.members):
                return True
        elif self.is_universal_atom(b) or self.atomic_subtype(a, b):
            return True

        # A sealed atom is covered when each of its parts is.
        parts = self.expand(a)
        return bool(parts) and all(self.is_subtype(p, b) for p in parts)

    def is_equivalent(self, a: Any, b: Any) -> bool:
        return self.is_subtype(a, b) and self.is_subtype(b, a)

    def proper_subtype(self, a: Any, b: Any) -> bool:
        return self.is_subtype(a, b) and not self.is_subtype(b, a)

    # ------------------------------------------------------------------
    # Runtime matching
    # ------------------------------------------------------------------

    def runtime_test(self, a: Any) -> RuntimeTest:
        """
        Matcher used by generated dispatch code.

        Class tests (a class or tuple of classes) are emitted as
        ``isinstance`` checks; anything else is called as a predicate.
        """
        a = self.normalize(a)
        if a is TOP:
            return object
        if a is BOTTOM:
            return _never
        if isinstance(a, TypeUnion):
            tests = [self.runtime_test(m) for m in a.members]
            if all(is_class_test(t) for t in tests):
                flat = []
                for t in tests:
                    flat.extend(t if isinstance(t, tuple) else (t,))
                return tuple(flat)
            predicates = [as_predicate(t) for t in tests]
            return lambda value: any(p(value) for p in predicates)
        return self.atomic_test(a)


class ClassOracle(SubtypeOracle):
    """
    Oracle over Python classes.

    ``issubclass`` decides atoms, so ABCs with virtual subclasses
    (``collections.abc.Sequence``) work as umbrella types. ``object`` is
    universal. ``int | str``, ``typing.Union``, ``Optional`` and
    parameterized generics are normalized (generics are erased to their
    origin, which is all a runtime check can see).

    Usage:
        >>> oracle = ClassOracle()
        >>> oracle.proper_subtype(bool, int)
        True
        >>> oracle.is_equivalent(int | str, union(str, int))
        True
    """

    def __init__(self, sealed: Optional[Dict[type, Iterable[type]]] = None):
        self._sealed: Dict[type, Tuple[type, ...]] = {
            cls: tuple(parts) for cls, parts in (sealed or {}).items()
        }

    def normalize(self, a: Any) -> Any:
        if a is None:
            return type(None)
        if a is typing.Any:
            return TOP
        if isinstance(a, (TypeUnion, Bound)):
            return a
        origin = typing.get_origin(a)
        if origin is None:
            return a
        if origin is Union or isinstance(a, types.UnionType):
            return union(*(self.normalize(arg) for arg in typing.get_args(a)))
        if isinstance(origin, type):
            return origin
        return a

    def atomic_subtype(self, a: Any, b: Any) -> bool:
        # Foreign descriptors are only related to themselves.
        if not isinstance(a, type) or not isinstance(b, type):
            return a == b
        return issubclass(a, b)

    def atomic_test(self, a: Any) -> RuntimeTest:
        if not isinstance(a, type):
            raise SpecializationError(f"no runtime test for non-class type {a!r}")
        return a

    def expand(self, a: Any) -> Tuple[Any, ...]:
        return self._sealed.get(a, ())

    def is_universal_atom(self, a: Any) -> bool:
        return a is object


class HierarchyOracle(SubtypeOracle):
    """
    Oracle over a declared nominal hierarchy.

    Descriptors are names; ``parents`` maps each name to its direct
    supertypes. The atomic relation is the reflexive-transitive closure.
    Names absent from the declaration are only related to themselves.

    Usage:
        >>> oracle = HierarchyOracle(
        ...     {'Fixnum': ['Integer'], 'Bignum': ['Integer'],
        ...      'Integer': ['Number'], 'Float': ['Number']},
        ...     sealed={'Integer': ['Fixnum', 'Bignum']},
        ...     tests={'Integer': int, 'Float': float},
        ... )
        >>> oracle.is_equivalent('Integer', union('Fixnum', 'Bignum'))
        True
    """

    def __init__(
        self,
        parents: Dict[Any, Iterable[Any]],
        sealed: Optional[Dict[Any, Iterable[Any]]] = None,
        tests: Optional[Dict[Any, RuntimeTest]] = None,
        universal: Iterable[Any] = (),
    ):
        self._parents: Dict[Any, Tuple[Any, ...]] = {
            name: tuple(ps) for name, ps in parents.items()
        }
        self._sealed: Dict[Any, Tuple[Any, ...]] = {
            name: tuple(parts) for name, parts in (sealed or {}).items()
        }
        self._tests: Dict[Any, RuntimeTest] = dict(tests or {})
        self._universal = frozenset(universal)
        self._ancestors: Dict[Any, FrozenSet[Any]] = {}

    def ancestors(self, name: Any) -> FrozenSet[Any]:
        """``name`` together with every declared supertype of it."""
        closure = self._ancestors.get(name)
        if closure is None:
            closure = self._ancestors[name] = self._closure(name)
        return closure

    def _closure(self, name: Any) -> FrozenSet[Any]:
        seen = {name}
        stack = [name]
        while stack:
            for parent in self._parents.get(stack.pop(), ()):
                if parent not in seen:
                    seen.add(parent)
                    stack.append(parent)
        return frozenset(seen)

    def atomic_subtype(self, a: Any, b: Any) -> bool:
        return b in self.ancestors(a)

    def atomic_test(self, a: Any) -> RuntimeTest:
        try:
            return self._tests[a]
        except KeyError:
            raise SpecializationError(
                f"no runtime test declared for type {format_type(a)}"
            ) from None

    def expand(self, a: Any) -> Tuple[Any, ...]:
        return self._sealed.get(a, ())

    def is_universal_atom(self, a: Any) -> bool:
        return a in self._universal


DEFAULT_ORACLE = ClassOracle()
