import math
from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Callable

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Either(Generic[E, T], ABC):
    """Result of a validation step: ``Right(value)`` or ``Left(error)``."""

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()


class Right(Generic[E, T], Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Generic[E, T], Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    # a failed step short-circuits everything chained after it
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return self

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return self

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def required(field: str, label: str) -> Callable[[dict], Either[dict, dict]]:
    """Validation step: ``field`` must be present and non-blank."""
    def _check(form: dict) -> Either[dict, dict]:
        value = form.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            return Left({
                "error": "required",
                "field": field,
                "message": f"{label} is required",
            })
        return Right(form)
    return _check


def positive_amount(field: str = "amount") -> Callable[[dict], Either[dict, dict]]:
    def _check(form: dict) -> Either[dict, dict]:
        raw = form.get(field)
        try:
            amount = float(raw)
        except (TypeError, ValueError):
            return Left({
                "error": "invalid_amount",
                "field": field,
                "message": f"Amount must be a number, got {raw!r}",
            })
        if not math.isfinite(amount):
            return Left({
                "error": "invalid_amount",
                "field": field,
                "message": f"Amount must be a finite number, got {raw!r}",
            })
        if amount <= 0:
            return Left({
                "error": "invalid_amount",
                "field": field,
                "message": "Amount must be greater than zero",
                "amount": amount,
            })
        return Right({**form, field: amount})
    return _check


def one_of(field: str, allowed: tuple[str, ...]) -> Callable[[dict], Either[dict, dict]]:
    def _check(form: dict) -> Either[dict, dict]:
        if form.get(field) not in allowed:
            return Left({
                "error": f"invalid_{field}",
                "field": field,
                "message": f"{field} must be one of {', '.join(allowed)}",
            })
        return Right(form)
    return _check


def validate(form: dict, *steps: Callable[[dict], Either[dict, dict]]) -> Either[dict, dict]:
    """Run ``steps`` in order and stop at the first Left."""
    result: Either[dict, dict] = Right(form)
    for step in steps:
        result = result.bind(step)
    return result
