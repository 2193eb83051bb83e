"""A fixed-capacity set of small non-negative integers."""

from __future__ import annotations

from typing import Iterator

_WORD = 64
_MASK = (1 << _WORD) - 1


class Bitset:
    """Bits grouped in 64-bit words; capacity is rounded up to whole words."""

    __slots__ = ("_words", "_bits")

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError("bitset size must be non-negative")
        self._words = -(-size // _WORD)
        self._bits = 0

    @property
    def capacity(self) -> int:
        return self._words * _WORD

    def _check(self, pos: int) -> None:
        if not 0 <= pos < self.capacity:
            raise IndexError(f"bit {pos} out of range for capacity {self.capacity}")

    def clone(self) -> Bitset:
        copy = Bitset(0)
        copy._words = self._words
        copy._bits = self._bits
        return copy

    def set(self, pos: int) -> Bitset:
        self._check(pos)
        self._bits |= 1 << pos
        return self

    def clear(self, pos: int) -> Bitset:
        self._check(pos)
        self._bits &= ~(1 << pos)
        return self

    def get(self, pos: int) -> bool:
        self._check(pos)
        return bool(self._bits >> pos & 1)

    def popcount(self) -> int:
        return bin(self._bits).count("1")

    def _chunks(self) -> Iterator[int]:
        bits = self._bits
        for _ in range(self._words):
            yield bits & _MASK
            bits >>= _WORD

    def digest(self) -> int:
        """A 64-bit hash: the population count xor-ed with every word."""
        result = self.popcount()
        for chunk in self._chunks():
            result ^= chunk
        return result & _MASK

    def __iter__(self) -> Iterator[int]:
        bits = self._bits
        pos = 0
        while bits:
            if bits & 1:
                yield pos
            bits >>= 1
            pos += 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bitset):
            return NotImplemented
        return self._words == other._words and self._bits == other._bits

    def __hash__(self) -> int:
        return self.digest()

    def __repr__(self) -> str:
        return f"Bitset(capacity={self.capacity}, bits={list(self)})"