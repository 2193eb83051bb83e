"""Value encoding for RPC messages and persisted state, with checks for common mistakes.

Values are serialised so that a receiver never shares objects with the sender.
The encoder warns about dataclass fields that are private (leading underscore),
and the decoder warns when asked to decode into a template that already holds
non-default values. Only classes that have been encoded in this process, or
registered explicitly, may be reconstructed by a decoder.
"""

from __future__ import annotations

import dataclasses
import logging
import pickle
import threading
from enum import Enum
from typing import Any, BinaryIO, get_origin

_log = logging.getLogger(__name__)

_lock = threading.Lock()
_error_count = 0
_checked: set[type] = set()
_known: dict[tuple[str, str], type] = {}
_names: dict[str, type] = {}

_SCALARS = (bool, int, float, str)
_ATOMS = (type(None), bool, int, float, complex, str, bytes, bytearray)
_BUILTIN_TYPES = frozenset(
    {
        type(None), bool, int, float, complex, str, bytes, bytearray,
        list, tuple, dict, set, frozenset, range, slice, type,
    }
)
_SAFE_BUILTINS = frozenset({"complex", "set", "frozenset", "bytearray", "range", "slice"})


def error_count() -> int:
    """Number of warnings and errors reported so far in this process."""
    with _lock:
        return _error_count


def _report(message: str, *, always: bool) -> None:
    global _error_count
    with _lock:
        if always or _error_count < 1:
            _log.warning(message)
        _error_count += 1


def _check_type(cls: type) -> None:
    if cls in _BUILTIN_TYPES:
        return
    with _lock:
        if cls in _checked:
            return
        _checked.add(cls)
        _known[(cls.__module__, cls.__qualname__)] = cls
    if dataclasses.is_dataclass(cls):
        for field in dataclasses.fields(cls):
            if field.name.startswith("_"):
                _report(
                    f"labgob error: private field {field.name} of {cls.__name__} "
                    "in RPC or persist/snapshot is not allowed",
                    always=True,
                )


def _walk(value: Any, seen: set[int]) -> None:
    if isinstance(value, type):
        _check_type(value)
        return
    _check_type(type(value))
    if isinstance(value, _ATOMS) or isinstance(value, Enum):
        return
    marker = id(value)
    if marker in seen:
        return
    seen.add(marker)
    if isinstance(value, dict):
        for key, item in value.items():
            _walk(key, seen)
            _walk(item, seen)
    elif isinstance(value, (list, tuple, set, frozenset)):
        for item in value:
            _walk(item, seen)
    elif dataclasses.is_dataclass(value):
        for field in dataclasses.fields(value):
            _walk(getattr(value, field.name), seen)
    elif hasattr(value, "__dict__"):
        for item in vars(value).values():
            _walk(item, seen)


def _check_value(value: Any) -> None:
    _walk(value, set())


def _check_default(value: Any, depth: int, name: str) -> None:
    if depth > 3 or value is None:
        return
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        for field in dataclasses.fields(value):
            path = f"{name}.{field.name}" if name else field.name
            _check_default(getattr(value, field.name), depth + 1, path)
    elif isinstance(value, _SCALARS) and not isinstance(value, Enum):
        if value != type(value)():
            what = name or type(value).__name__
            _report(
                f"labgob warning: decoding into a non-default variable/field {what}; "
                "its current value is discarded",
                always=False,
            )


def _normalise_target(target: Any) -> Any:
    origin = get_origin(target)
    return origin if origin is not None else target


def register(value: Any) -> None:
    """Allow the type of ``value`` (or ``value`` itself, if a class) to be decoded."""
    cls = value if isinstance(value, type) else type(value)
    register_name(f"{cls.__module__}.{cls.__qualname__}", value)


def register_name(name: str, value: Any) -> None:
    """Register the type of ``value`` under ``name``; a name maps to one type only."""
    cls = value if isinstance(value, type) else type(value)
    with _lock:
        existing = _names.get(name)
        if existing is not None and existing is not cls:
            raise ValueError(f"labgob: name {name!r} already registered for {existing.__qualname__}")
        for other_name, other in _names.items():
            if other is cls and other_name != name:
                raise ValueError(f"labgob: type {cls.__qualname__} already registered as {other_name!r}")
        _names[name] = cls
    _check_value(value)


class _Unpickler(pickle.Unpickler):
    def find_class(self, module: str, name: str) -> Any:
        if module == "builtins" and name in _SAFE_BUILTINS:
            return super().find_class(module, name)
        with _lock:
            cls = _known.get((module, name))
        if cls is None:
            raise pickle.UnpicklingError(
                f"labgob: type {module}.{name} was never encoded or registered"
            )
        return cls


class LabEncoder:
    """Writes checked, self-contained encodings of values to a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def encode(self, value: Any) -> None:
        _check_value(value)
        pickle.dump(value, self._stream, protocol=pickle.HIGHEST_PROTOCOL)


class LabDecoder:
    """Reads values written by a :class:`LabEncoder` from a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def decode(self, target: Any = None) -> Any:
        """Decode the next value.

        ``target`` is either the expected type or a template instance of it;
        the decoded value must be an instance of that type. ``None`` accepts
        anything.
        """
        target = _normalise_target(target)
        if target is not None:
            _check_value(target)
            if not isinstance(target, type):
                _check_default(target, 1, "")
        value = _Unpickler(self._stream).load()
        if target is not None:
            expected = target if isinstance(target, type) else type(target)
            if not isinstance(value, expected):
                raise TypeError(
                    f"labgob: decoded {type(value).__name__}, expected {expected.__name__}"
                )
        return value