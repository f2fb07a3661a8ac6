"""Validation failures for the rules core.

Every public rules operation returns either its value or a
``ValidationFailure``; nothing raises across a component boundary. Inside a
component, helpers raise ``RulesError`` subclasses and the ``returns_failure``
decorator converts them at the edge, logging and counting each rejection once.
"""

from __future__ import annotations

import enum
import functools
from collections.abc import Callable
from dataclasses import dataclass
from typing import ParamSpec, TypeGuard, TypeVar

import structlog

from ChaosTable.metrics import inc_counter

_log = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")


class ErrorCode(str, enum.Enum):
    INVALID_NOTATION = "invalid_notation"
    UNSUPPORTED_DIE = "unsupported_die"
    OUT_OF_RANGE_INPUT = "out_of_range_input"


@dataclass(frozen=True)
class ValidationFailure:
    code: ErrorCode
    message: str
    # Name of the offending input, for field-level form errors
    field: str | None = None


class RulesError(ValueError):
    """Raised inside the rules core; never escapes a public operation."""

    code: ErrorCode = ErrorCode.OUT_OF_RANGE_INPUT

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.failure = ValidationFailure(self.code, message, field)
        self.reported = False

    @classmethod
    def from_failure(cls, failure: ValidationFailure) -> RulesError:
        err_cls = _ERRORS_BY_CODE[failure.code]
        err = err_cls(failure.message, field=failure.field)
        err.reported = True
        return err


class InvalidNotation(RulesError):
    code = ErrorCode.INVALID_NOTATION


class UnsupportedDie(RulesError):
    code = ErrorCode.UNSUPPORTED_DIE


class OutOfRangeInput(RulesError):
    code = ErrorCode.OUT_OF_RANGE_INPUT


_ERRORS_BY_CODE: dict[ErrorCode, type[RulesError]] = {
    ErrorCode.INVALID_NOTATION: InvalidNotation,
    ErrorCode.UNSUPPORTED_DIE: UnsupportedDie,
    ErrorCode.OUT_OF_RANGE_INPUT: OutOfRangeInput,
}


def is_failure(value: object) -> TypeGuard[ValidationFailure]:
    return isinstance(value, ValidationFailure)


def unwrap(value: T | ValidationFailure) -> T:
    """Return the value, or re-raise a failure so an enclosing operation reports it."""
    if isinstance(value, ValidationFailure):
        raise RulesError.from_failure(value)
    return value


def returns_failure(component: str) -> Callable[[Callable[P, T]], Callable[P, T | ValidationFailure]]:
    """Convert ``RulesError`` raised by the wrapped operation into a returned failure."""

    def decorator(func: Callable[P, T]) -> Callable[P, T | ValidationFailure]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T | ValidationFailure:
            try:
                return func(*args, **kwargs)
            except RulesError as exc:
                if not exc.reported:
                    inc_counter(f"rules.validation.{exc.failure.code.value}")
                    _log.warning(
                        f"rules.{component}.rejected",
                        operation=func.__name__,
                        code=exc.failure.code.value,
                        field=exc.failure.field,
                        reason=exc.failure.message,
                    )
                return exc.failure

        return wrapper

    return decorator
