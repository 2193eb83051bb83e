"""Entry points of the linearizability checker.

A timeout of ``None`` or 0 means no timeout. When a check times out the
history is reported as :attr:`CheckResult.UNKNOWN`; it may still be illegal.
"""

from __future__ import annotations

from typing import Sequence

from distlab.porcupine.checker import (
    LinearizationInfo,
    Timeout,
    check_events_detailed,
    check_operations_detailed,
)
from distlab.porcupine.model import CheckResult, Event, Model, Operation


def check_operations(model: Model, history: Sequence[Operation]) -> bool:
    result, _ = check_operations_detailed(model, history, False, None)
    return result is CheckResult.OK


def check_operations_timeout(
    model: Model, history: Sequence[Operation], timeout: Timeout
) -> CheckResult:
    result, _ = check_operations_detailed(model, history, False, timeout)
    return result


def check_operations_verbose(
    model: Model, history: Sequence[Operation], timeout: Timeout
) -> tuple[CheckResult, LinearizationInfo]:
    return check_operations_detailed(model, history, True, timeout)


def check_events(model: Model, history: Sequence[Event]) -> bool:
    result, _ = check_events_detailed(model, history, False, None)
    return result is CheckResult.OK


def check_events_timeout(model: Model, history: Sequence[Event], timeout: Timeout) -> CheckResult:
    result, _ = check_events_detailed(model, history, False, timeout)
    return result


def check_events_verbose(
    model: Model, history: Sequence[Event], timeout: Timeout
) -> tuple[CheckResult, LinearizationInfo]:
    return check_events_detailed(model, history, True, timeout)