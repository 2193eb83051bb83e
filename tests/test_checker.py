import time

import pytest

from distlab.kvmodel import KV_MODEL, KvInput, KvOp, KvOutput
from distlab.porcupine.checker import (
    LinearizationInfo,
    check_events_detailed,
    check_operations_detailed,
    fill_default,
)
from distlab.porcupine.model import (
    CheckResult,
    Event,
    EventKind,
    Model,
    Operation,
    default_describe_operation,
    default_describe_state,
    no_partition,
    no_partition_event,
    shallow_equal,
)


def put(key, value, call, ret, client=0):
    return Operation(KvInput(KvOp.PUT, key, value), call, KvOutput(), ret, client)


def get(key, value, call, ret, client=0):
    return Operation(KvInput(KvOp.GET, key), call, KvOutput(value), ret, client)


def test_fill_default_sets_all_optional_members():
    model = Model(init=lambda: 0, step=lambda s, i, o: (True, s))
    filled = fill_default(model)
    assert filled.partition is no_partition
    assert filled.partition_event is no_partition_event
    assert filled.equal is shallow_equal
    assert filled.describe_operation is default_describe_operation
    assert filled.describe_state is default_describe_state
    assert model.partition is None


def test_fill_default_keeps_given_members():
    filled = fill_default(KV_MODEL)
    assert filled.partition is KV_MODEL.partition
    assert filled.describe_operation is KV_MODEL.describe_operation


def test_sequential_history_is_ok():
    history = [put("x", "1", 0, 10), get("x", "1", 20, 30)]
    result, _ = check_operations_detailed(KV_MODEL, history)
    assert result is CheckResult.OK


def test_stale_read_is_illegal():
    history = [put("x", "1", 0, 10), get("x", "", 20, 30)]
    result, _ = check_operations_detailed(KV_MODEL, history)
    assert result is CheckResult.ILLEGAL


def test_concurrent_read_may_see_old_value():
    history = [put("x", "1", 0, 10), get("x", "", 5, 15, client=1)]
    result, _ = check_operations_detailed(KV_MODEL, history)
    assert result is CheckResult.OK


def test_verbose_info_for_ok_history_holds_complete_linearization():
    history = [put("x", "1", 0, 10), get("x", "1", 20, 30)]
    result, info = check_operations_detailed(KV_MODEL, history, compute_info=True)
    assert result is CheckResult.OK
    assert len(info.history) == 1
    assert len(info.history[0]) == 4
    assert info.partial_linearizations == [[[0, 1]]]


def test_verbose_info_for_illegal_history_holds_longest_prefix():
    history = [put("x", "1", 0, 10), get("x", "", 20, 30)]
    result, info = check_operations_detailed(KV_MODEL, history, compute_info=True)
    assert result is CheckResult.ILLEGAL
    assert info.partial_linearizations == [[[0]]]


def test_non_verbose_info_is_empty():
    _, info = check_operations_detailed(KV_MODEL, [put("x", "1", 0, 10)])
    assert info == LinearizationInfo()


def test_partitions_are_checked_independently():
    history = [
        put("a", "1", 0, 10),
        put("b", "2", 0, 10, client=1),
        get("a", "1", 20, 30),
        get("b", "2", 20, 30, client=1),
    ]
    result, info = check_operations_detailed(KV_MODEL, history, compute_info=True)
    assert result is CheckResult.OK
    assert len(info.history) == 2
    assert all(entry.value.key == "a" for entry in info.history[0] if entry.kind is EventKind.CALL)


def test_one_bad_partition_makes_history_illegal():
    history = [
        put("a", "1", 0, 10),
        get("a", "1", 20, 30),
        put("b", "2", 0, 10, client=1),
        get("b", "", 20, 30, client=1),
    ]
    result, _ = check_operations_detailed(KV_MODEL, history)
    assert result is CheckResult.ILLEGAL


def test_empty_history_is_ok():
    assert check_operations_detailed(KV_MODEL, [])[0] is CheckResult.OK
    assert check_operations_detailed(Model(init=lambda: 0, step=lambda s, i, o: (False, s)), [])[0] is CheckResult.OK


def test_events_history():
    events = [
        Event(EventKind.CALL, KvInput(KvOp.PUT, "x", "1"), 7),
        Event(EventKind.CALL, KvInput(KvOp.GET, "x"), 9, client_id=1),
        Event(EventKind.RETURN, KvOutput(), 7),
        Event(EventKind.RETURN, KvOutput("1"), 9, client_id=1),
    ]
    result, info = check_events_detailed(KV_MODEL, events, compute_info=True)
    assert result is CheckResult.OK
    assert sorted({entry.id for entry in info.history[0]}) == [0, 1]


def test_events_illegal():
    events = [
        Event(EventKind.CALL, KvInput(KvOp.PUT, "x", "1"), 0),
        Event(EventKind.RETURN, KvOutput(), 0),
        Event(EventKind.CALL, KvInput(KvOp.GET, "x"), 1),
        Event(EventKind.RETURN, KvOutput("2"), 1),
    ]
    result, _ = check_events_detailed(KV_MODEL, events)
    assert result is CheckResult.ILLEGAL


def _slow_model():
    def step(state, inp, out):
        time.sleep(0.02)
        return True, state + 1

    return Model(init=lambda: 0, step=step)


def test_timeout_gives_unknown():
    history = [Operation(None, 10 * i, None, 10 * i + 5) for i in range(40)]
    result, _ = check_operations_detailed(_slow_model(), history, timeout=0.05)
    assert result is CheckResult.UNKNOWN


def test_model_error_is_raised():
    def step(state, inp, out):
        raise RuntimeError("boom")

    model = Model(init=lambda: 0, step=step)
    with pytest.raises(RuntimeError, match="boom"):
        check_operations_detailed(model, [Operation(None, 0, None, 1)])