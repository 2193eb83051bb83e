"""Histories, models and results for the linearizability checker."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Sequence


@dataclass(frozen=True)
class Operation:
    """A completed operation: its input and output with call and return times."""

    input: Any
    call: int
    output: Any
    ret: int
    client_id: int = 0


class EventKind(Enum):
    CALL = False
    RETURN = True


@dataclass(frozen=True)
class Event:
    """One half of an operation; a call and its return share the same id."""

    kind: EventKind
    value: Any
    id: int
    client_id: int = 0


@dataclass
class Model:
    """A sequential specification of the system under test.

    ``step(state, input, output)`` returns whether the step is legal and the
    new state; it must not mutate ``state``. Optional members left as ``None``
    take default behaviour when a history is checked.
    """

    init: Callable[[], Any]
    step: Callable[[Any, Any, Any], tuple[bool, Any]]
    partition: Optional[Callable[[Sequence[Operation]], list[list[Operation]]]] = None
    partition_event: Optional[Callable[[Sequence[Event]], list[list[Event]]]] = None
    equal: Optional[Callable[[Any, Any], bool]] = None
    describe_operation: Optional[Callable[[Any, Any], str]] = None
    describe_state: Optional[Callable[[Any], str]] = None


class CheckResult(str, Enum):
    UNKNOWN = "Unknown"
    OK = "Ok"
    ILLEGAL = "Illegal"


def no_partition(history: Sequence[Operation]) -> list[list[Operation]]:
    """Treat the whole history as one partition."""
    return [list(history)]


def no_partition_event(history: Sequence[Event]) -> list[list[Event]]:
    """Treat the whole event history as one partition."""
    return [list(history)]


def shallow_equal(state1: Any, state2: Any) -> bool:
    return state1 == state2


def default_describe_operation(input: Any, output: Any) -> str:
    return f"{input} -> {output}"


def default_describe_state(state: Any) -> str:
    return f"{state}"