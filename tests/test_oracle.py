"""
Tests for the subtype oracles.

Validates:
  - TOP / BOTTOM / union algebra
  - ClassOracle: issubclass, ABCs, normalization, sealed classes
  - HierarchyOracle: declared closure, sealed names, runtime tests
  - Runtime matchers used by generated code
"""

import gc
import typing
import weakref
from collections.abc import Sequence

import pytest
from typecase.analysis.oracle import (
    TOP,
    BOTTOM,
    TypeUnion,
    union,
    ClassOracle,
    HierarchyOracle,
)
from typecase.errors import SpecializationError


class Shape:
    pass


class Circle(Shape):
    pass


class Square(Shape):
    pass


NUMBERS = {
    'Fixnum': ['Integer'],
    'Bignum': ['Integer'],
    'Integer': ['Number'],
    'Float': ['Number'],
    'Complex': ['Number'],
}


# ---------- Union Algebra ----------

class TestUnion:
    def test_empty_union_is_bottom(self):
        assert union() is BOTTOM

    def test_single_member(self):
        assert union(int) is int

    def test_top_absorbs(self):
        assert union(int, TOP, str) is TOP

    def test_bottom_dropped(self):
        assert union(BOTTOM, int) is int

    def test_nested_flattened(self):
        u = union(union(int, str), float)
        assert isinstance(u, TypeUnion)
        assert u.members == (int, str, float)

    def test_repr(self):
        assert repr(union(int, Sequence)) == "Union[int, collections.abc.Sequence]"
        assert repr(TOP) == 'TOP'


# ---------- ClassOracle ----------

class TestClassOracle:
    def setup_method(self):
        self.oracle = ClassOracle()

    def test_reflexive(self):
        assert self.oracle.is_subtype(int, int)
        assert self.oracle.is_equivalent(str, str)

    def test_proper_subtype(self):
        assert self.oracle.proper_subtype(bool, int)
        assert not self.oracle.proper_subtype(int, bool)
        assert not self.oracle.proper_subtype(int, int)

    def test_abc_umbrella(self):
        assert self.oracle.is_subtype(list, Sequence)
        assert self.oracle.is_subtype(str, Sequence)
        assert not self.oracle.is_subtype(set, Sequence)

    def test_object_is_universal(self):
        assert self.oracle.is_equivalent(object, TOP)
        assert self.oracle.is_subtype(TOP, object)

    def test_bottom(self):
        assert self.oracle.is_subtype(BOTTOM, int)
        assert not self.oracle.is_subtype(int, BOTTOM)
        assert self.oracle.is_subtype(BOTTOM, BOTTOM)

    def test_union_on_both_sides(self):
        assert self.oracle.is_subtype(union(bool, int), int)
        assert self.oracle.is_subtype(int, union(str, int))
        assert not self.oracle.is_subtype(union(int, str), int)

    def test_pep604_and_typing_union_normalized(self):
        assert self.oracle.is_equivalent(int | str, union(str, int))
        assert self.oracle.is_equivalent(typing.Union[int, str], int | str)
        assert self.oracle.is_equivalent(typing.Optional[int], union(int, type(None)))

    def test_generic_alias_erased(self):
        assert self.oracle.is_equivalent(list[int], list)
        assert self.oracle.is_subtype(typing.List[str], Sequence)

    def test_any_is_top(self):
        assert self.oracle.is_equivalent(typing.Any, TOP)

    def test_unsealed_class_not_covered(self):
        assert not self.oracle.is_equivalent(Shape, union(Circle, Square))

    def test_sealed_class_covered(self):
        oracle = ClassOracle(sealed={Shape: [Circle, Square]})
        assert oracle.is_equivalent(Shape, union(Circle, Square))
        assert not oracle.is_equivalent(Shape, Circle)

    def test_foreign_descriptor_unrelated(self):
        assert not self.oracle.is_subtype('Fixnum', str)
        assert self.oracle.is_subtype('Fixnum', 'Fixnum')
        assert self.oracle.is_subtype('Fixnum', TOP)


# ---------- HierarchyOracle ----------

class TestHierarchyOracle:
    def setup_method(self):
        self.oracle = HierarchyOracle(NUMBERS)

    def test_transitive(self):
        assert self.oracle.is_subtype('Fixnum', 'Number')
        assert self.oracle.proper_subtype('Fixnum', 'Integer')

    def test_unrelated(self):
        assert not self.oracle.is_subtype('Float', 'Integer')
        assert not self.oracle.is_subtype('String', 'Number')

    def test_unknown_name_reflexive(self):
        assert self.oracle.is_equivalent('String', 'String')

    def test_ancestors(self):
        assert self.oracle.ancestors('Fixnum') == frozenset({'Fixnum', 'Integer', 'Number'})

    def test_ancestors_cached_per_instance(self):
        other = HierarchyOracle({'Fixnum': ['Float']})
        assert self.oracle.ancestors('Fixnum') == frozenset({'Fixnum', 'Integer', 'Number'})
        assert other.ancestors('Fixnum') == frozenset({'Fixnum', 'Float'})
        assert self.oracle.ancestors('Fixnum') is self.oracle.ancestors('Fixnum')

    def test_discarded_oracle_is_collected(self):
        oracle = HierarchyOracle(NUMBERS)
        assert oracle.is_subtype('Fixnum', 'Number')
        ref = weakref.ref(oracle)
        del oracle
        gc.collect()
        assert ref() is None

    def test_mutual_parents_are_equivalent(self):
        oracle = HierarchyOracle({'Int': ['Integer'], 'Integer': ['Int']})
        assert oracle.is_equivalent('Int', 'Integer')
        assert not oracle.proper_subtype('Int', 'Integer')

    def test_sealed_expansion(self):
        oracle = HierarchyOracle(NUMBERS, sealed={'Integer': ['Fixnum', 'Bignum']})
        assert oracle.is_equivalent('Integer', union('Fixnum', 'Bignum'))
        assert oracle.is_subtype('Integer', union('Fixnum', 'Bignum', 'Float'))
        assert not self.oracle.is_equivalent('Integer', union('Fixnum', 'Bignum'))

    def test_declared_universal(self):
        oracle = HierarchyOracle(NUMBERS, universal=['T'])
        assert oracle.is_subtype('Number', 'T')
        assert oracle.is_equivalent('T', TOP)

    def test_runtime_test_lookup(self):
        oracle = HierarchyOracle(NUMBERS, tests={'Integer': int})
        assert oracle.runtime_test('Integer') is int

    def test_missing_runtime_test(self):
        with pytest.raises(SpecializationError, match='Float'):
            self.oracle.runtime_test('Float')


# ---------- Runtime Matchers ----------

class TestRuntimeTest:
    def test_class_union_flattens_to_tuple(self):
        oracle = ClassOracle()
        assert oracle.runtime_test(union(str, union(bytes, bytearray))) == (str, bytes, bytearray)

    def test_top_matches_everything(self):
        assert ClassOracle().runtime_test(TOP) is object

    def test_bottom_matches_nothing(self):
        matcher = ClassOracle().runtime_test(BOTTOM)
        assert not matcher(0)
        assert not matcher(None)

    def test_mixed_union_is_predicate(self):
        oracle = HierarchyOracle({}, tests={'Small': lambda v: v < 10, 'Text': str})
        matcher = oracle.runtime_test(union('Text', 'Small'))
        assert callable(matcher) and not isinstance(matcher, tuple)
        assert matcher(3)
        assert matcher('x')

    def test_non_class_rejected_by_class_oracle(self):
        with pytest.raises(SpecializationError):
            ClassOracle().runtime_test('Fixnum')
