"""Request and reply messages of the single-server key/value service."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestID:
    """Identifies one request of one client; the string form is its table key."""

    client_id: int
    rpc_count: int

    def __str__(self) -> str:
        return f"{self.client_id}-{self.rpc_count}"


@dataclass(frozen=True)
class PutAppendArgs:
    key: str
    value: str
    request_id: RequestID


@dataclass
class PutAppendReply:
    value: str = ""


@dataclass(frozen=True)
class GetArgs:
    key: str
    request_id: RequestID


@dataclass
class GetReply:
    value: str = ""