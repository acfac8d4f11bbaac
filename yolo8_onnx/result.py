from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from loguru import logger

from .errors import ErrorKind, YoloError


T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Tagged outcome of a core operation: either a value or an error, never both.
    """

    value: Optional[T] = None
    error: Optional[YoloError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: YoloError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return None if self.error is None else self.error.kind

    @property
    def message(self) -> Optional[str]:
        return None if self.error is None else self.error.message

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def capture(fn: Callable[..., T], *args, **kwargs) -> Result[T]:
    """Run `fn` and fold any `YoloError` into a failed `Result`."""

    try:
        return Result.success(fn(*args, **kwargs))
    except YoloError as exc:
        logger.debug("{} failed: {}", getattr(fn, "__name__", fn), exc)
        return Result.failure(exc)
