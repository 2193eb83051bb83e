import time
from datetime import timedelta

from distlab.kvmodel import KV_MODEL, KvInput, KvOp, KvOutput
from distlab.porcupine.api import (
    check_events,
    check_events_timeout,
    check_events_verbose,
    check_operations,
    check_operations_timeout,
    check_operations_verbose,
)
from distlab.porcupine.model import CheckResult, Event, EventKind, Model, Operation

GOOD = [
    Operation(KvInput(KvOp.PUT, "k", "v"), 0, KvOutput(), 10),
    Operation(KvInput(KvOp.APPEND, "k", "w"), 20, KvOutput(), 30),
    Operation(KvInput(KvOp.GET, "k"), 40, KvOutput("vw"), 50),
]
BAD = [
    Operation(KvInput(KvOp.PUT, "k", "v"), 0, KvOutput(), 10),
    Operation(KvInput(KvOp.GET, "k"), 40, KvOutput("w"), 50),
]


def as_events(history):
    events = []
    for ident, op in enumerate(history):
        events.append(Event(EventKind.CALL, op.input, ident))
        events.append(Event(EventKind.RETURN, op.output, ident))
    return events


def test_check_operations():
    assert check_operations(KV_MODEL, GOOD) is True
    assert check_operations(KV_MODEL, BAD) is False


def test_check_operations_timeout_without_limit():
    assert check_operations_timeout(KV_MODEL, GOOD, 0) is CheckResult.OK
    assert check_operations_timeout(KV_MODEL, BAD, timedelta(seconds=5)) is CheckResult.ILLEGAL


def test_check_operations_verbose():
    result, info = check_operations_verbose(KV_MODEL, GOOD, 0)
    assert result is CheckResult.OK
    assert info.partial_linearizations == [[[0, 1, 2]]]


def test_check_events():
    assert check_events(KV_MODEL, as_events(GOOD)) is True
    assert check_events(KV_MODEL, as_events(BAD)) is False


def test_check_events_timeout_and_verbose():
    assert check_events_timeout(KV_MODEL, as_events(GOOD), None) is CheckResult.OK
    result, info = check_events_verbose(KV_MODEL, as_events(BAD), None)
    assert result is CheckResult.ILLEGAL
    assert len(info.history) == 1
    assert len(info.history[0]) == 4


def test_timeout_is_reported_as_unknown():
    def step(state, inp, out):
        time.sleep(0.02)
        return True, state

    model = Model(init=lambda: 0, step=step)
    history = [Operation(None, 10 * i, None, 10 * i + 1) for i in range(40)]
    assert check_operations_timeout(model, history, 0.05) is CheckResult.UNKNOWN