"""Shared MapReduce types: key/value pairs, partition hashing and RPC messages."""

from __future__ import annotations

import os
from dataclasses import dataclass

_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193


@dataclass(frozen=True)
class KeyValue:
    """One pair emitted by a map function."""

    key: str
    value: str


@dataclass
class ExampleArgs:
    x: int = 0


@dataclass
class ExampleReply:
    y: int = 0


def ihash(key: str) -> int:
    """Non-negative 31-bit FNV-1a hash; ``ihash(key) % n_reduce`` picks a reduce task."""
    h = _FNV32_OFFSET
    for byte in key.encode("utf-8"):
        h ^= byte
        h = (h * _FNV32_PRIME) & 0xFFFFFFFF
    return h & 0x7FFFFFFF


def coordinator_sock() -> str:
    """Per-user UNIX-domain socket path for the coordinator."""
    getuid = getattr(os, "getuid", None)
    uid = getuid() if getuid is not None else 0
    return f"/var/tmp/5840-mr-{uid}"