"""Result pattern implementation for error handling.

This module implements the Result pattern, providing a type-safe way to handle
operations that can succeed or fail without relying on exceptions. It also
defines the domain error taxonomy used by the resolution engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar('T')  # Success type
E = TypeVar('E', bound=Exception)  # Error type


class Result(ABC, Generic[T, E]):
    """Abstract base class for Result pattern.

    A Result represents either a successful operation with a value,
    or a failed operation with an error.
    """

    @abstractmethod
    def is_success(self) -> bool:
        """Check if the result is a success."""
        ...

    @abstractmethod
    def is_failure(self) -> bool:
        """Check if the result is a failure."""
        ...

    @abstractmethod
    def value(self) -> T:
        """Get the success value.

        Raises:
            ValueError: If the result is a failure.
        """
        ...

    @abstractmethod
    def error(self) -> E:
        """Get the error.

        Raises:
            ValueError: If the result is a success.
        """
        ...

    @abstractmethod
    def map(self, fn: Callable[[T], Any]) -> Result[Any, E]:
        """Map the success value through a function."""
        ...

    @abstractmethod
    def flat_map(self, fn: Callable[[T], Result[Any, E]]) -> Result[Any, E]:
        """Flat map the success value through a function that returns a Result."""
        ...


@dataclass(frozen=True, slots=True)
class Success(Result[T, E]):
    """Represents a successful operation with a value."""
    _value: T

    def __repr__(self) -> str:
        return f"Success({self._value!r})"

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def value(self) -> T:
        return self._value

    def error(self) -> E:
        raise ValueError("Cannot get error from Success result")

    def map(self, fn: Callable[[T], Any]) -> Result[Any, E]:
        return Success(fn(self._value))

    def flat_map(self, fn: Callable[[T], Result[Any, E]]) -> Result[Any, E]:
        return fn(self._value)


@dataclass(frozen=True, slots=True)
class Failure(Result[T, E]):
    """Represents a failed operation with an error."""
    _error: E

    def __repr__(self) -> str:
        return f"Failure({self._error!r})"

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def value(self) -> T:
        raise ValueError(f"Cannot get value from Failure result: {self._error}")

    def error(self) -> E:
        return self._error

    def map(self, fn: Callable[[T], Any]) -> Result[Any, E]:
        return self

    def flat_map(self, fn: Callable[[T], Result[Any, E]]) -> Result[Any, E]:
        return self


def collect(results: list[Result[T, E]]) -> Result[list[T], list[E]]:
    """Collect a list of Results into a single Result.

    If all results are Success, returns Success with a list of all values.
    If any results are Failure, returns Failure with a list of all errors.
    """
    values = []
    errors = []

    for result in results:
        if result.is_success():
            values.append(result.value())
        else:
            errors.append(result.error())

    return Success(values) if not errors else Failure(errors)


def partition(results: list[Result[T, E]]) -> tuple[list[T], list[E]]:
    """Partition a list of Results into successes and failures.

    Returns:
        A tuple of (success_values, failure_errors)
    """
    successes = []
    failures = []

    for result in results:
        if result.is_success():
            successes.append(result.value())
        else:
            failures.append(result.error())

    return successes, failures


# Domain-specific errors for catalog number resolution
class DomainError(Exception):
    """Base class for domain-specific errors."""
    pass


class ParseErrorKind(Enum):
    """Why a raw catalog number was rejected."""
    NO_MATCH = "no_match"
    INVALID_GROUP = "invalid_group"


class ParseError(DomainError):
    """Raised when a raw catalog number does not parse under its scheme."""

    def __init__(self, kind: ParseErrorKind, scheme_id: str, raw: str,
                 detail: Optional[str] = None):
        self.kind = kind
        self.scheme_id = scheme_id
        self.raw = raw
        self.detail = detail
        if kind is ParseErrorKind.NO_MATCH:
            message = f"'{raw}' is not a valid {scheme_id} number"
        else:
            message = f"'{raw}' has an invalid group for {scheme_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SchemeNotFound(DomainError):
    """Raised when a scheme id is not registered."""

    def __init__(self, scheme_id: str, composer: Optional[str] = None):
        self.scheme_id = scheme_id
        self.composer = composer
        super().__init__(f"Unknown catalog scheme: {scheme_id}")


class ComposerNotFound(DomainError):
    """Raised when a composer has no entry in the catalog index."""

    def __init__(self, composer: str):
        self.composer = composer
        super().__init__(f"Unknown composer: {composer}")


class EditionNotFound(DomainError):
    """Raised when an edition reference cannot be resolved.

    Also used when strict mode rejects a superseded number; ``strict_rejection``
    is set in that case and ``canonical`` names the number it was replaced by.
    """

    def __init__(self, message: str, number: Optional[str] = None,
                 edition: Optional[str] = None, strict_rejection: bool = False,
                 canonical: Optional[str] = None):
        self.number = number
        self.edition = edition
        self.strict_rejection = strict_rejection
        self.canonical = canonical
        super().__init__(message)


class AmbiguousRange(DomainError):
    """Raised when a range selector cannot be evaluated unambiguously."""
    pass


class DataIntegrityError(DomainError):
    """Raised when scheme or index data is inconsistent.

    Covers cyclic or dangling edition alias chains and sort key collisions
    between distinct compositions.
    """

    def __init__(self, message: str, scheme_id: Optional[str] = None):
        self.scheme_id = scheme_id
        super().__init__(message)
