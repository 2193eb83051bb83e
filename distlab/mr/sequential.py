"""A simple sequential MapReduce: map every input, sort, reduce each key."""

from __future__ import annotations

import itertools
import os
import sys
from operator import attrgetter
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from distlab.mr.apps import App, get_app
from distlab.mr.core import KeyValue

PathLike = Union[str, "os.PathLike[str]"]

_USAGE = "Usage: mrsequential xxx.so inputfiles..."


def run_sequential(
    app: Union[App, str], files: Iterable[PathLike], output: PathLike = "mr-out-0"
) -> Path:
    """Run ``app`` over ``files`` and write ``key result`` lines, sorted by key, to ``output``."""
    if isinstance(app, str):
        app = get_app(app)
    intermediate: list[KeyValue] = []
    for filename in files:
        name = os.fspath(filename)
        with open(name, encoding="utf-8", errors="surrogateescape", newline="") as handle:
            content = handle.read()
        intermediate.extend(app.map(name, content))

    intermediate.sort(key=attrgetter("key"))

    path = Path(output)
    with path.open("w", encoding="utf-8", errors="surrogateescape", newline="") as out:
        for key, group in itertools.groupby(intermediate, key=attrgetter("key")):
            values = [kv.value for kv in group]
            out.write(f"{key} {app.reduce(key, values)}\n")
    return path


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command line: an app name followed by input files; writes ``mr-out-0``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        print(_USAGE, file=sys.stderr)
        return 1
    try:
        app = get_app(args[0])
    except KeyError:
        print(f"cannot load plugin {args[0]}", file=sys.stderr)
        return 1
    try:
        run_sequential(app, args[1:])
    except OSError as exc:
        print(f"cannot open {exc.filename}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())