# respkit

Building blocks for Redis-compatible servers and clients, in plain Python
with no third-party dependencies.

## Modules

| Module | Purpose |
| --- | --- |
| `respkit.protocol` | RESP reply types (`StatusReply`, `IntReply`, `BulkReply`, `MultiBulkReply`, `MultiRawReply`, `NullBulkReply`, `EmptyMultiBulkReply`, `NoReply`, `OkReply`, `PongReply`, `QueuedReply`) and error replies (`StandardErrReply`, `ArgNumErrReply`, `SyntaxErrReply`, `WrongTypeErrReply`, `UnknownErrReply`, `ProtocolErrReply`), each encoded with `to_bytes()`; plus `is_ok_reply` and `is_error_reply` |
| `respkit.parser` | Streaming RESP parser: `parse_stream` yields `Payload` objects; `parse_bytes` and `parse_one` parse in-memory data |
| `respkit.connection` | Server-side `Connection` state (subscriptions, transaction queue, watched keys, selected database, replica/master flags), an in-memory `FakeConn`, and `Wait`, a work counter that can be waited on with a timeout |
| `respkit.pubsub` | Channel `Hub` with `subscribe`, `unsubscribe`, `unsubscribe_all`, `publish` and `make_msg` |
| `respkit.client` | Pipelined TCP `Client` with periodic PING and automatic reconnect |
| `respkit.tcpserver` | Threaded `listen_and_serve`, `listen_and_serve_with_signal`, `ServerConfig`, and an `EchoHandler` |
| `respkit.pool` | Object `Pool` with `PoolConfig(max_idle, max_active)` limits |
| `respkit.timewheel` | `TimeWheel` scheduler, plus `delay`, `at` and `cancel` on a shared one-second wheel |
| `respkit.geohash` | 64-bit geohash `encode`/`decode`, `to_string`, `to_int`, `from_int`, `to_range`, `distance`, `get_neighbours` |
| `respkit.consistenthash` | `HashRing` with hash-tag (`{tag}`) support |
| `respkit.snowflake` | Snowflake-style `IDGenerator` |
| `respkit.wildcard` | Glob patterns: `compile_pattern(...).is_match(...)` |
| `respkit.utils` | Command-line builders (`to_cmd_line`, `to_cmd_line2`, `to_cmd_line3`) and `convert_range` for inclusive, possibly negative index ranges |
| `respkit.logger` | Levelled logging (`debug`, `info`, `warn`, `error`, `fatal`) to stdout, and to a dated file after `setup(LogSettings(...))` |

## Examples

Parsing RESP data:

```python
from respkit.parser import parse_one

reply = parse_one(b"*2\r\n$3\r\nGET\r\n$1\r\na\r\n")
print(reply.to_bytes())  # b'*2\r\n$3\r\nGET\r\n$1\r\na\r\n'
```

Matching keys with glob patterns:

```python
from respkit.wildcard import compile_pattern

pattern = compile_pattern("h[a-c]llo")
pattern.is_match("hallo")  # True
pattern.is_match("hello")  # False
```

Routing keys across nodes:

```python
from respkit.consistenthash import HashRing

ring = HashRing(3, None)
ring.add_node("a", "b", "c", "d")
ring.pick_node("zxc")       # 'a'
ring.pick_node("123{abc}")  # same node as "abc"
```

Geohashing a coordinate:

```python
from respkit import geohash

code = geohash.encode(48.669, -4.32913)
geohash.to_string(geohash.from_int(code))  # 'gbsuv7zt7zntw'
lat, lng = geohash.decode(code)
```

Publishing to subscribers, with an in-memory connection:

```python
from respkit.connection import FakeConn
from respkit.pubsub import Hub, publish, subscribe
from respkit.utils import to_cmd_line

hub = Hub()
conn = FakeConn()
subscribe(hub, conn, to_cmd_line("news"))
conn.clean()
publish(hub, to_cmd_line("news", "hello"))
conn.getvalue()  # b'*3\r\n$7\r\nmessage\r\n$4\r\nnews\r\n$5\r\nhello\r\n'
```

Talking to a server:

```python
from respkit.client import Client

with Client("localhost:6379") as client:
    reply = client.send([b"PING"])
```

`Client.send` returns a reply rather than raising: a `StandardErrReply`
with `"client closed"`, `"server time out"` (after `max_wait` seconds,
3 by default) or `"request failed"` when the request cannot be served.

Running a job later:

```python
from respkit import timewheel

timewheel.delay(5, "job-1", lambda: print("done"))
timewheel.cancel("job-1")
```

## Errors

Failures are raised as exceptions: `respkit.parser.ProtocolError` for
malformed input, `respkit.wildcard.WildcardError` for bad patterns,
`respkit.pool.PoolClosedError` when taking from a closed pool and
`respkit.pool.PoolExhaustedError` when the pool closes while a caller is
waiting, `respkit.snowflake.ClockMovedBackwardsError` when the clock goes
backwards, `ValueError` from `TimeWheel` for a non-positive interval or slot
count, and `OSError` from `logger.setup` when the log file cannot be opened.
`logger.fatal` logs and then raises `SystemExit(1)`.

## What it does not do

respkit has no key-value store and executes no commands: there is no
database, no persistence and no command dispatcher. `listen_and_serve`
accepts connections and hands each socket to a handler object with
`handle(sock)` and `close()` methods; the only handler included is
`EchoHandler`. The package installs no command-line program.