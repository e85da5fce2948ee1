"""
Result monad — the core of Railway-Oriented Programming.

A Result[T] is either Success(value: T) or Failure(error: FailureDescription).
Fallible operations return Result instead of raising. Errors propagate
automatically through the failure track via .flat_map() short-circuiting.

    ┌───────────┐   flat_map    ┌───────────┐   flat_map    ┌──────────┐
    │  segment  │──Success──────│  decode   │──Success──────│ rewrite  │──→ Result[T]
    │           │               │           │               │          │
    └─────┬─────┘               └─────┬─────┘               └─────┬────┘
          │ Failure                   │ Failure                   │ Failure
          └───────────────────────────┴───────────────────────────┴──→ Result[T]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from railway.failure import ErrorCode, FailureDescription

T = TypeVar("T")
U = TypeVar("U")
R = TypeVar("R")


class Result(Generic[T]):
    """
    Railway-Oriented Programming Result monad.

    Two possible states:
      - Success(value: T)  — the happy path
      - Failure(error: FailureDescription) — the error track

    Usage:
        >>> result = Result.success(3).map(lambda n: n - 1)
        >>> result.value()
        2

        >>> result = Result.failure(ErrorCode.INPUT_ERROR, "missing file")
        >>> result.map(lambda n: n - 1).is_failure()
        True
    """

    # ──────────────────────── Introspection ────────────────────────

    def is_success(self) -> bool:
        """Check if this Result is a Success."""
        return isinstance(self, Success)

    def is_failure(self) -> bool:
        """Check if this Result is a Failure."""
        return isinstance(self, Failure)

    def value(self) -> T:
        """
        Extract the success value. Raises ValueError if called on a Failure.

        Prefer .either() or match/case for safe access.
        """
        match self:
            case Success(v):
                return v
            case Failure(err):
                raise ValueError(f"Cannot get value from a Failure: {err.message}")
        raise TypeError("unreachable")  # pragma: no cover

    def error(self) -> FailureDescription:
        """
        Extract the failure description. Raises ValueError if called on a Success.

        Prefer .either() or match/case for safe access.
        """
        match self:
            case Failure(err):
                return err
            case Success(v):
                raise ValueError(f"Cannot get error from a Success: {v}")
        raise TypeError("unreachable")  # pragma: no cover

    # ──────────────────────── Core Transformations ────────────────────────

    def either(
        self,
        on_success: Callable[[T], R],
        on_failure: Callable[[FailureDescription], R],
    ) -> R:
        """
        Apply one of two functions depending on the state.

            result.either(
                on_success=lambda report: print_report(report),
                on_failure=lambda err: print_error(err),
            )
        """
        match self:
            case Success(v):
                return on_success(v)
            case Failure(err):
                return on_failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def map(self, mapper: Callable[[T], U]) -> Result[U]:
        """
        Transform the success value. Short-circuits on failure.

            Result.success(5).map(lambda x: x * 2)  # → Success(10)
            Result.failure(...).map(lambda x: x * 2)  # → same Failure
        """
        match self:
            case Success(v):
                return Success(mapper(v))
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def flat_map(self, mapper: Callable[[T], Result[U]]) -> Result[U]:
        """
        Chain a Result-returning function. Short-circuits on failure.

        This is the KEY operator of ROP: it connects railway segments.

            segment_bundle(path).flat_map(lambda blocks: decode_all(blocks))
        """
        match self:
            case Success(v):
                return mapper(v)
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def ensure(
        self,
        predicate: Callable[[T], bool],
        error: FailureDescription | ErrorCode,
        message: str = "",
    ) -> Result[T]:
        """
        Validate the success value against a condition.
        Short-circuits on existing failure.

        Can accept either a FailureDescription or an ErrorCode + message.

            decoder.decode(block).ensure(
                lambda report: bool(report.strip()),
                ErrorCode.DECODE_ERROR, "decoder produced no output"
            )
        """
        if isinstance(error, ErrorCode):
            error = FailureDescription(code=error, message=message)

        return self.flat_map(
            lambda v: Result.success(v) if predicate(v) else Result.failure_from(error)
        )

    # ──────────────────────── Side Effects ────────────────────────

    def peek(self, action: Callable[[T], Any]) -> Result[T]:
        """
        Execute a side effect on success value without altering the Result.

            result.peek(lambda records: log.info("decoded", count=len(records)))
        """
        match self:
            case Success(v):
                action(v)
        return self

    # ──────────────────────── Static Factories ────────────────────────

    @staticmethod
    def success(value: T) -> Result[T]:
        """Create a successful Result wrapping the given value."""
        return Success(value)

    @staticmethod
    def failure_from(error: FailureDescription) -> Result[T]:
        """Create a failed Result from a FailureDescription."""
        return Failure(error)

    @staticmethod
    def failure(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
    ) -> Result[T]:
        """
        Create a failed Result with error code, message, and optional exception.

            Result.failure(ErrorCode.INPUT_ERROR, "certs.pem is not a regular file")
            Result.failure(ErrorCode.REWRITE_ERROR, "rename failed", ex)
        """
        return Failure(FailureDescription(code=code, message=message, exception=exception))

    @staticmethod
    def from_computation(
        computation: Callable[[], T],
        error_code: ErrorCode,
        error_message: str,
    ) -> Result[T]:
        """
        Create a Result from a computation that may raise.

        Wraps exceptions into Result.failure instead of try/except at every call site.
        The exception text is appended to the message so it survives reporting.

            return Result.from_computation(
                lambda: path.read_text(),
                ErrorCode.INPUT_ERROR,
                f"Cannot read {path}",
            )
        """
        try:
            return Result.success(computation())
        except Exception as e:
            return Result.failure(error_code, f"{error_message}: {e}", e)

    # ──────────────────────── Dunder methods ────────────────────────

    def __repr__(self) -> str:
        match self:
            case Success(v):
                return f"Success({v!r})"
            case Failure(err):
                return f"Failure({err.code.value}: {err.message!r})"
        raise TypeError("unreachable")  # pragma: no cover

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        match (self, other):
            case (Success(a), Success(b)):
                return a == b
            case (Failure(a), Failure(b)):
                return a.code == b.code and a.message == b.message
            case _:
                return False


@dataclass(frozen=True, slots=True)
class Success(Result[T]):
    """The success track — wraps a value of type T."""

    _value: T

    def __init__(self, value: T) -> None:
        if value is None:
            raise TypeError("Success value must not be None")
        object.__setattr__(self, "_value", value)

    def __repr__(self) -> str:
        return f"Success({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Success):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Success", self._value))


# Enable structural pattern matching: case Success(value)
Success.__match_args__ = ("_value",)


@dataclass(frozen=True, slots=True)
class Failure(Result[T]):
    """The failure track — wraps a FailureDescription."""

    _error: FailureDescription

    def __init__(self, error: FailureDescription) -> None:
        if error is None:
            raise TypeError("Failure error must not be None")
        object.__setattr__(self, "_error", error)

    def __repr__(self) -> str:
        return f"Failure({self._error.code.value}: {self._error.message!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Failure):
            return self._error.code == other._error.code and self._error.message == other._error.message
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Failure", self._error.code, self._error.message))


# Enable structural pattern matching: case Failure(error)
Failure.__match_args__ = ("_error",)
