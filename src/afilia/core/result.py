from collections.abc import Callable
from typing import Generic, Optional, TypeVar

from afilia.core.exceptions import AppError

T = TypeVar("T")


class AppResult(Generic[T]):
    """
    A container for the outcome of a fallible operation.

    It holds either a successful value or an `AppError`, mimicking the Result
    type in languages like Rust.
    """

    def __init__(self, value: Optional[T] = None, error: Optional[AppError] = None):
        if error is not None and value is not None:
            raise ValueError("AppResult cannot have both a value and an error.")

        self._value = value
        self._error = error

    @classmethod
    def capture(cls, func: Callable[[], T]) -> "AppResult[T]":
        """Run `func`, capturing an `AppError` instead of raising it."""
        try:
            return cls(value=func())
        except AppError as err:
            return cls(error=err)

    def is_ok(self) -> bool:
        """Returns True if the result is successful."""
        return self._error is None

    def is_err(self) -> bool:
        """Returns True if the result is an error."""
        return self._error is not None

    def unwrap(self) -> T:
        """
        Returns the contained value if the result is successful.
        Raises the contained error otherwise.
        """
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    @property
    def value(self) -> T:
        """
        Property to access the value. Alias for unwrap().
        """
        return self.unwrap()

    @property
    def error(self) -> Optional[AppError]:
        """
        Property to access the error if the result is an error.
        """
        return self._error

    def __repr__(self) -> str:
        if self.is_ok():
            return f"Ok({self._value!r})"
        return f"Err({self._error!r})"
