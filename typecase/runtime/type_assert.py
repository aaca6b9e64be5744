"""
Type Assertions
===============

Checks a value against a type descriptor and, on failure, lets the caller
supply a replacement through a recovery callback instead of aborting:

    >>> assert_type('3', int, recover=lambda failure: int(failure.value))
    3

A failure is returned as a ``TypeCheckFailure`` record carrying the value
and the expected type. The replacement is checked again; when attempts run
out, or no callback is given, ``TypeAssertionError`` is raised.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from typecase.analysis.oracle import DEFAULT_ORACLE, SubtypeOracle, as_predicate
from typecase.errors import TypeAssertionError
from typecase.utils.helpers import format_type


@dataclass(frozen=True)
class TypeCheckFailure:
    """Record of a value that did not match its expected type."""
    value: Any
    expected: Any
    attempt: int = 0

    def __str__(self):
        return (
            f"TypeCheck[{format_type(self.expected)}]: got "
            f"{type(self.value).__name__} {self.value!r:.40}"
        )


def check_type(
    value: Any,
    expected: Any,
    oracle: SubtypeOracle = DEFAULT_ORACLE,
) -> Optional[TypeCheckFailure]:
    """``None`` if ``value`` matches ``expected``, else the failure record."""
    matches = as_predicate(oracle.runtime_test(expected))
    if matches(value):
        return None
    return TypeCheckFailure(value=value, expected=expected)


def assert_type(
    value: Any,
    expected: Any,
    oracle: SubtypeOracle = DEFAULT_ORACLE,
    recover: Optional[Callable[[TypeCheckFailure], Any]] = None,
    max_attempts: int = 3,
) -> Any:
    """
    Return ``value`` if it matches ``expected``.

    Otherwise ask ``recover`` for a replacement, up to ``max_attempts``
    times, and return the first replacement that matches.
    """
    failure = check_type(value, expected, oracle)
    attempt = 0
    while failure is not None:
        if recover is None or attempt >= max_attempts:
            raise TypeAssertionError(failure.value, expected, attempt)
        attempt += 1
        value = recover(TypeCheckFailure(failure.value, expected, attempt))
        failure = check_type(value, expected, oracle)
    return value
