# distlab

Building blocks for writing and testing small distributed systems in Python.

## What is inside

- `distlab.labgob`: `LabEncoder` and `LabDecoder` write and read values on a
  binary stream, so that a receiver never shares objects with the sender.
  The encoder logs an error for dataclass fields whose names start with an
  underscore. `LabDecoder.decode(target)` takes the expected type or a
  template instance; it raises `TypeError` if the decoded value is of
  another type, and logs a warning when the template already holds
  non-default values. Only classes that were encoded in this process or made
  known with `register()` / `register_name()` can be decoded.
  `error_count()` reports how many warnings and errors have been seen.
- `distlab.porcupine`: a linearizability checker.
  - `distlab.porcupine.model`: `Operation`, `Event`, `EventKind`, `Model`,
    `CheckResult`, and the defaults `no_partition`, `no_partition_event`,
    `shallow_equal`, `default_describe_operation`, `default_describe_state`.
  - `distlab.porcupine.api`: `check_operations()` and `check_events()`
    return `True` when the history is linearizable; the `*_timeout`
    variants return a `CheckResult` (`OK`, `ILLEGAL`, or `UNKNOWN` when the
    time limit ran out); the `*_verbose` variants also return a
    `LinearizationInfo` with the longest partial linearizations found.
    Timeouts are seconds or a `timedelta`; `None` or 0 means no limit.
  - `distlab.porcupine.checker`: the search itself
    (`check_operations_detailed`, `check_events_detailed`, `fill_default`).
  - `distlab.porcupine.bitset`: the `Bitset` used to memoise the search.
- `distlab.kvmodel`: a ready-made model of a key/value store with get, put,
  append and append-returning-the-old-value (`KvOp`, `KvInput`, `KvOutput`,
  `kv_step`, ...), partitioned by key, assembled as `KV_MODEL`.
- `distlab.kvsrv.common`: the request and reply messages of a single-server
  key/value service (`RequestID`, `GetArgs`, `GetReply`, `PutAppendArgs`,
  `PutAppendReply`).
- `distlab.mr`: MapReduce helpers.
  - `distlab.mr.core`: `KeyValue`, `ihash()` for picking a reduce bucket,
    `coordinator_sock()`, and the `ExampleArgs` / `ExampleReply` messages.
  - `distlab.mr.apps`: map/reduce applications looked up by name with
    `get_app()`: `wc`, `indexer`, and test applications `crash`, `nocrash`,
    `early_exit`, `jobcount`, `mtiming` and `rtiming` that crash, stall,
    count their invocations or measure parallelism (several leave marker
    files in the working directory; `crash` exits the process at random).
  - `distlab.mr.sequential`: a single-process runner.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Sequential MapReduce

The `distlab-mrsequential` command runs a MapReduce application over a set of
input files in one process and writes the reduced output, one `key value`
line per distinct key in sorted key order, to `mr-out-0`:

```
distlab-mrsequential wc pg-*.txt
```

The first argument names the application (`wc`, `indexer`, ...; a path such
as `../mrapps/wc.so` names `wc`); the rest are input files.

The same can be done from Python:

```python
from distlab.mr.apps import get_app
from distlab.mr.sequential import run_sequential

run_sequential(get_app("wc"), ["pg-being_ernest.txt"], "mr-out-0")
```

## Choosing a reduce bucket

```python
from distlab.mr.core import ihash

n_reduce = 10
bucket = ihash("word") % n_reduce
```

`ihash` is 32-bit FNV-1a of the key's UTF-8 bytes with the top bit cleared,
so every worker maps a key to the same bucket.

## Checking a history

```python
from distlab.kvmodel import KV_MODEL, KvInput, KvOp, KvOutput
from distlab.porcupine.api import check_operations
from distlab.porcupine.model import Operation

history = [
    Operation(KvInput(KvOp.PUT, "x", "1"), call=0, output=KvOutput(), ret=10),
    Operation(KvInput(KvOp.GET, "x"), call=5, output=KvOutput("1"), ret=15),
]
assert check_operations(KV_MODEL, history)
```

## Encoding a message

```python
import io

from distlab.kvsrv.common import GetArgs, RequestID
from distlab.labgob import LabDecoder, LabEncoder

buffer = io.BytesIO()
LabEncoder(buffer).encode(GetArgs("k", RequestID(1, 0)))
buffer.seek(0)
args = LabDecoder(buffer).decode(GetArgs)
```

## What the package does not do

There is no RPC transport or simulated network in the package, and no
running key/value server or client: `distlab.kvsrv` holds only the message
types. Likewise there is no distributed MapReduce coordinator or worker;
MapReduce jobs run only through the sequential runner.