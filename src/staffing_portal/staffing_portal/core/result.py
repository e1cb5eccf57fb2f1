from __future__ import annotations

from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Generic, TypeVar, Union

from .enums import ErrorKind
from .exceptions import DomainError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome plus the notification effects the caller should fire."""

    value: T
    effects: tuple = field(default_factory=tuple)

    ok = True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    ok = False


Result = Union[Ok[T], Err]


def returns_result(method):
    """Wrap a service method so it returns ``Ok``/``Err`` instead of raising.

    The wrapped method may return an ``Ok`` itself (to attach effects) or any
    plain value, which is wrapped in ``Ok``. ``DomainError`` becomes ``Err``;
    anything else propagates.
    """

    @wraps(method)
    def wrapper(*args: Any, **kwargs: Any):
        try:
            value = method(*args, **kwargs)
        except DomainError as e:
            return Err(kind=e.kind, message=e.message)
        if isinstance(value, Ok):
            return value
        return Ok(value)

    return wrapper
