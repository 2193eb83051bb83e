"""MapReduce applications: word count, an indexer, and apps that exercise fault tolerance and timing."""

from __future__ import annotations

import itertools
import os
import random
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Sequence

from distlab.mr.core import KeyValue

MapFunc = Callable[[str, str], list[KeyValue]]
ReduceFunc = Callable[[str, Sequence[str]], str]


@dataclass(frozen=True)
class App:
    """A named pair of map and reduce functions."""

    name: str
    map: MapFunc
    reduce: ReduceFunc


def _words(text: str) -> Iterator[str]:
    """Maximal runs of letters; every other character separates words."""
    for is_letter, run in itertools.groupby(text, key=str.isalpha):
        if is_letter:
            yield "".join(run)


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8", "surrogateescape"))


def _summary(filename: str, contents: str) -> list[KeyValue]:
    return [
        KeyValue("a", filename),
        KeyValue("b", str(_byte_len(filename))),
        KeyValue("c", str(_byte_len(contents))),
        KeyValue("d", "xyzzy"),
    ]


def _sorted_join(values: Sequence[str]) -> str:
    return " ".join(sorted(values))


# word count


def wc_map(filename: str, contents: str) -> list[KeyValue]:
    """One ``(word, "1")`` pair per word of ``contents``; the file name is ignored."""
    return [KeyValue(word, "1") for word in _words(contents)]


def wc_reduce(key: str, values: Sequence[str]) -> str:
    """The number of occurrences of the word."""
    return str(len(values))


# inverted index


def indexer_map(document: str, value: str) -> list[KeyValue]:
    """One ``(word, document)`` pair per distinct word of the document."""
    distinct = dict.fromkeys(_words(value))
    return [KeyValue(word, document) for word in distinct]


def indexer_reduce(key: str, values: Sequence[str]) -> str:
    """The number of documents holding the word, then their sorted names."""
    documents = sorted(values)
    return f"{len(documents)} {','.join(documents)}"


# sometimes crashes, sometimes stalls


def _maybe_crash() -> None:
    roll = secrets.randbelow(1000)
    if roll < 330:
        os._exit(1)
    elif roll < 660:
        time.sleep(secrets.randbelow(10 * 1000) / 1000)


def crash_map(filename: str, contents: str) -> list[KeyValue]:
    _maybe_crash()
    return _summary(filename, contents)


def crash_reduce(key: str, values: Sequence[str]) -> str:
    _maybe_crash()
    return _sorted_join(values)


# the same output as the crashing app, without crashes


def nocrash_map(filename: str, contents: str) -> list[KeyValue]:
    return _summary(filename, contents)


def nocrash_reduce(key: str, values: Sequence[str]) -> str:
    return _sorted_join(values)


# some reduce tasks run long, to catch workers that exit early


def early_exit_map(filename: str, contents: str) -> list[KeyValue]:
    """A single ``(filename, "1")`` pair per file."""
    return [KeyValue(filename, "1")]


def early_exit_reduce(key: str, values: Sequence[str]) -> str:
    if "sherlock" in key or "tom" in key:
        time.sleep(3)
    return str(len(values))


# counts how many times map tasks were run

_JOBCOUNT_PREFIX = "mr-worker-jobcount"
_jobcount = itertools.count()


def jobcount_map(filename: str, contents: str) -> list[KeyValue]:
    """Leave a marker file in the working directory, then stall for 2 to 5 seconds."""
    marker = Path(f"{_JOBCOUNT_PREFIX}-{os.getpid()}-{next(_jobcount)}")
    marker.write_bytes(b"x")
    time.sleep((2000 + random.randrange(3000)) / 1000)
    return [KeyValue("a", "x")]


def jobcount_reduce(key: str, values: Sequence[str]) -> str:
    """The number of map invocations, counted from marker files."""
    invocations = sum(1 for name in os.listdir(".") if name.startswith(_JOBCOUNT_PREFIX))
    return str(invocations)


# timing apps: report how many workers run in parallel


def _alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except (OSError, OverflowError):
        return False
    return True


def _nparallel(phase: str) -> int:
    """Count live workers in ``phase``, announcing this one with a marker file."""
    mine = Path(f"mr-worker-{phase}-{os.getpid()}")
    mine.write_bytes(b"x")
    pattern = re.compile(rf"mr-worker-{re.escape(phase)}-([+-]?\d+)")
    running = 0
    for name in os.listdir("."):
        found = pattern.match(name)
        if found and _alive(int(found.group(1))):
            running += 1
    time.sleep(1)
    mine.unlink()
    return running


def mtiming_map(filename: str, contents: str) -> list[KeyValue]:
    """Report this worker's start time and how many map workers ran alongside it."""
    started = time.time()
    pid = os.getpid()
    running = _nparallel("map")
    return [
        KeyValue(f"times-{pid}", f"{started:.1f}"),
        KeyValue(f"parallel-{pid}", str(running)),
    ]


def mtiming_reduce(key: str, values: Sequence[str]) -> str:
    return _sorted_join(values)


def rtiming_map(filename: str, contents: str) -> list[KeyValue]:
    return [KeyValue(key, "1") for key in "abcdefghij"]


def rtiming_reduce(key: str, values: Sequence[str]) -> str:
    """How many reduce workers ran alongside this one."""
    return str(_nparallel("reduce"))


_APPS = {
    app.name: app
    for app in (
        App("wc", wc_map, wc_reduce),
        App("indexer", indexer_map, indexer_reduce),
        App("crash", crash_map, crash_reduce),
        App("nocrash", nocrash_map, nocrash_reduce),
        App("early_exit", early_exit_map, early_exit_reduce),
        App("jobcount", jobcount_map, jobcount_reduce),
        App("mtiming", mtiming_map, mtiming_reduce),
        App("rtiming", rtiming_map, rtiming_reduce),
    )
}


def get_app(name: str) -> App:
    """Look up an app by name; a path such as ``../mrapps/wc.so`` names ``wc``."""
    key = Path(name).stem
    try:
        return _APPS[key]
    except KeyError:
        raise KeyError(f"unknown app {name!r}; expecting one of {sorted(_APPS)}") from None