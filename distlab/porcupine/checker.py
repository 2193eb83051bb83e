"""Linearizability checking of operation and event histories.

Each partition of a history is searched independently for a sequential order
that is consistent with the model and with real-time ordering. The search
memoises (linearized set, state) pairs so that equivalent prefixes are only
explored once.
"""

from __future__ import annotations

import dataclasses
import queue
import threading
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional, Sequence, Union

from distlab.porcupine.bitset import Bitset
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

Timeout = Union[float, timedelta, None]


@dataclass(frozen=True)
class Entry:
    """A call or return point of one operation within a partition."""

    kind: EventKind
    value: Any
    id: int
    time: int
    client_id: int = 0


@dataclass
class LinearizationInfo:
    """Per partition: its entries, and the longest linearizable prefixes found."""

    history: list[list[Entry]] = field(default_factory=list)
    partial_linearizations: list[list[list[int]]] = field(default_factory=list)


class _Node:
    __slots__ = ("value", "match", "id", "next", "prev")

    def __init__(self, value: Any, match: Optional[_Node], id: int) -> None:
        self.value = value
        self.match = match  # set on a call, pointing at its return
        self.id = id
        self.next: Optional[_Node] = None
        self.prev: Optional[_Node] = None


def _insert_before(node: _Node, mark: Optional[_Node]) -> _Node:
    if mark is not None:
        before = mark.prev
        mark.prev = node
        node.next = mark
        if before is not None:
            node.prev = before
            before.next = node
    return node


def _length(node: Optional[_Node]) -> int:
    count = 0
    while node is not None:
        node = node.next
        count += 1
    return count


def _make_entries(history: Sequence[Operation]) -> list[Entry]:
    entries: list[Entry] = []
    for ident, operation in enumerate(history):
        entries.append(Entry(EventKind.CALL, operation.input, ident, operation.call, operation.client_id))
        entries.append(Entry(EventKind.RETURN, operation.output, ident, operation.ret, operation.client_id))
    # calls sort before returns that share a timestamp
    entries.sort(key=lambda e: (e.time, e.kind is EventKind.RETURN))
    return entries


def _renumber(events: Sequence[Event]) -> list[Event]:
    mapping: dict[int, int] = {}
    renumbered: list[Event] = []
    for event in events:
        if event.id not in mapping:
            mapping[event.id] = len(mapping)
        renumbered.append(dataclasses.replace(event, id=mapping[event.id]))
    return renumbered


def _convert_entries(events: Sequence[Event]) -> list[Entry]:
    # the position in the event list serves as the time
    return [
        Entry(event.kind, event.value, event.id, index, event.client_id)
        for index, event in enumerate(events)
    ]


def _make_linked_entries(entries: Sequence[Entry]) -> Optional[_Node]:
    root: Optional[_Node] = None
    returns: dict[int, _Node] = {}
    for entry in reversed(entries):
        if entry.kind is EventKind.RETURN:
            node = _Node(entry.value, None, entry.id)
            returns[entry.id] = node
        else:
            node = _Node(entry.value, returns.get(entry.id), entry.id)
        _insert_before(node, root)
        root = node
    return root


def _lift(node: _Node) -> None:
    node.prev.next = node.next
    node.next.prev = node.prev
    match = node.match
    match.prev.next = match.next
    if match.next is not None:
        match.next.prev = match.prev


def _unlift(node: _Node) -> None:
    match = node.match
    match.prev.next = match
    if match.next is not None:
        match.next.prev = match
    node.prev.next = node
    node.next.prev = node


def _check_single(
    model: Model,
    history: Sequence[Entry],
    compute_partial: bool,
    kill: threading.Event,
) -> tuple[bool, list[Optional[list[int]]]]:
    entry = _make_linked_entries(history)
    n = _length(entry) // 2
    linearized = Bitset(n)
    cache: dict[int, list[tuple[Bitset, Any]]] = {}
    calls: list[tuple[_Node, Any]] = []
    longest: list[Optional[list[int]]] = [None] * n

    def cached(bits: Bitset, candidate: Any) -> bool:
        return any(
            bits == other_bits and model.equal(candidate, other_state)
            for other_bits, other_state in cache.get(bits.digest(), ())
        )

    state = model.init()
    head = _insert_before(_Node(None, None, -1), entry)
    while head.next is not None:
        if kill.is_set():
            return False, longest
        if entry.match is not None:
            ok, new_state = model.step(state, entry.value, entry.match.value)
            if ok:
                new_linearized = linearized.clone().set(entry.id)
                if not cached(new_linearized, new_state):
                    cache.setdefault(new_linearized.digest(), []).append((new_linearized, new_state))
                    calls.append((entry, state))
                    state = new_state
                    linearized.set(entry.id)
                    _lift(entry)
                    entry = head.next
                else:
                    entry = entry.next
            else:
                entry = entry.next
        else:
            if not calls:
                return False, longest
            if compute_partial:
                depth = len(calls)
                seq: Optional[list[int]] = None
                for node, _ in calls:
                    current = longest[node.id]
                    if current is None or depth > len(current):
                        if seq is None:
                            seq = [call.id for call, _ in calls]
                        longest[node.id] = seq
            entry, state = calls.pop()
            linearized.clear(entry.id)
            _unlift(entry)
            entry = entry.next
    complete = [node.id for node, _ in calls]
    return True, [complete] * n


def fill_default(model: Model) -> Model:
    """A copy of ``model`` with every unset optional member given its default."""
    return dataclasses.replace(
        model,
        partition=model.partition or no_partition,
        partition_event=model.partition_event or no_partition_event,
        equal=model.equal or shallow_equal,
        describe_operation=model.describe_operation or default_describe_operation,
        describe_state=model.describe_state or default_describe_state,
    )


def _seconds(timeout: Timeout) -> Optional[float]:
    if timeout is None:
        return None
    if isinstance(timeout, timedelta):
        timeout = timeout.total_seconds()
    return timeout if timeout > 0 else None


def _unique_partials(longest: Sequence[Optional[list[int]]]) -> list[list[int]]:
    seen: set[int] = set()
    partials: list[list[int]] = []
    for seq in longest:
        if seq is not None and id(seq) not in seen:
            seen.add(id(seq))
            partials.append(list(seq))
    return partials


def _check_parallel(
    model: Model,
    history: list[list[Entry]],
    compute_info: bool,
    timeout: Timeout,
) -> tuple[CheckResult, LinearizationInfo]:
    kill = threading.Event()
    results: queue.Queue[tuple[bool, Optional[BaseException]]] = queue.Queue()
    longest: list[list[Optional[list[int]]]] = [[] for _ in history]

    def run(index: int, subhistory: list[Entry]) -> None:
        try:
            ok, found = _check_single(model, subhistory, compute_info, kill)
        except BaseException as exc:  # handed to the waiting caller
            results.put((False, exc))
            return
        longest[index] = found
        results.put((ok, None))

    for index, subhistory in enumerate(history):
        threading.Thread(target=run, args=(index, subhistory), daemon=True).start()

    seconds = _seconds(timeout)
    deadline = None if seconds is None else time.monotonic() + seconds
    ok = True
    timed_out = False
    count = 0
    while count < len(history):
        try:
            if deadline is None:
                result, error = results.get()
            else:
                result, error = results.get(timeout=max(0.0, deadline - time.monotonic()))
        except queue.Empty:
            timed_out = True
            kill.set()
            break
        count += 1
        if error is not None:
            kill.set()
            raise error
        ok = ok and result
        if not ok and not compute_info:
            kill.set()
            break

    info = LinearizationInfo()
    if compute_info:
        while count < len(history):
            _, error = results.get()
            count += 1
            if error is not None:
                raise error
        info.history = history
        info.partial_linearizations = [_unique_partials(found) for found in longest]

    if not ok:
        return CheckResult.ILLEGAL, info
    if timed_out:
        return CheckResult.UNKNOWN, info
    return CheckResult.OK, info


def check_operations_detailed(
    model: Model,
    history: Sequence[Operation],
    compute_info: bool = False,
    timeout: Timeout = None,
) -> tuple[CheckResult, LinearizationInfo]:
    """Check an operation history; a timeout of ``None`` or 0 waits indefinitely."""
    model = fill_default(model)
    partitions = [_make_entries(sub) for sub in model.partition(history)]
    return _check_parallel(model, partitions, compute_info, timeout)


def check_events_detailed(
    model: Model,
    history: Sequence[Event],
    compute_info: bool = False,
    timeout: Timeout = None,
) -> tuple[CheckResult, LinearizationInfo]:
    """Check an event history; a timeout of ``None`` or 0 waits indefinitely."""
    model = fill_default(model)
    partitions = [_convert_entries(_renumber(sub)) for sub in model.partition_event(history)]
    return _check_parallel(model, partitions, compute_info, timeout)