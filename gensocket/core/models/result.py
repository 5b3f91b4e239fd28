from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

TIMEOUT = "timeout"
"""
Reason carried by an Error when no matching notification arrived in time.
"""


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Error:
    reason: Any

    @property
    def ok(self) -> bool:
        return False

    @property
    def timed_out(self) -> bool:
        return self.reason == TIMEOUT


@dataclass(frozen=True)
class Connected:
    pass


@dataclass(frozen=True)
class Disconnected:
    reason: Any


ConnectStatus = Connected | Disconnected | Error
