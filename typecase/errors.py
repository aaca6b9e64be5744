"""
Error Kinds
===========

Every failure the dispatch pipeline can report. All of them are raised at
generation time except ``UnmatchedTypeError``, which is raised by emitted
code when no branch accepts a runtime value.
"""

from typing import Any, Sequence

from typecase.utils.helpers import format_type


class TypecaseError(Exception):
    """Base class for all typecase errors."""


class OracleInvariantError(TypecaseError):
    """
    The subtype oracle is not a valid preorder.

    Raised when the specificity sort cannot produce a linear extension or
    its result fails verification. Indicates a broken oracle; not something
    a caller can repair by changing its candidate list.
    """

    def __init__(self, message: str, types: Sequence[Any] = ()):
        super().__init__(message)
        self.types = tuple(types)


class NotASubtypeError(TypecaseError, TypeError):
    """A candidate type is not a subtype of the declared overall type."""

    def __init__(self, candidate: Any, overall: Any):
        super().__init__(
            f"supplied type {format_type(candidate)} is not a subtype of "
            f"the declared overall type {format_type(overall)}"
        )
        self.candidate = candidate
        self.overall = overall


class UnmatchedTypeError(TypecaseError, TypeError):
    """No dispatch branch matched a runtime value."""

    def __init__(self, value: Any, types: Sequence[Any] = ()):
        names = ', '.join(format_type(t) for t in types)
        super().__init__(
            f"unmatched type {type(value).__name__} for value {value!r:.60} "
            f"(branches: {names})"
        )
        self.value = value
        self.types = tuple(types)


class MissingFallbackError(TypecaseError, ValueError):
    """An accessor table does not end with a universal entry."""


class SpecializationError(TypecaseError):
    """A function cannot be recompiled into a dispatching variant."""


class TypeAssertionError(TypecaseError, TypeError):
    """A value failed a type assertion and was not recovered."""

    def __init__(self, value: Any, expected: Any, attempts: int = 0):
        super().__init__(
            f"value {value!r:.60} is not of type {format_type(expected)}"
            + (f" after {attempts} recovery attempt(s)" if attempts else "")
        )
        self.value = value
        self.expected = expected
        self.attempts = attempts
