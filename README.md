# socksnio

Building blocks for a single-threaded, non-blocking SOCKSv5 proxy. The package has no
third-party dependencies.

## Modules

- `socksnio.buffer`: `Buffer(capacity)` is a fixed-capacity byte buffer with separate
  read and write offsets. `writable()` and `readable()` return memoryviews over the
  free space and the pending bytes. `advance_write()` and `advance_read()` move the
  offsets. `read_byte()`, `write_byte()` and `write()` work on single bytes or byte
  strings. `compact()` moves pending bytes to the front. When reads catch up with
  writes, the buffer compacts itself. `len(buffer)` is the number of pending bytes.
- `socksnio.parser`: a table-driven byte parser engine. A `ParserDefinition` lists the
  `Transition`s of each state. A transition matches a byte value, a character class
  mask, or `ANY`. `Parser.feed(c)` returns a `ParserEvent` (with a second event in
  `.next` when the transition has two actions). It returns `None` when no transition
  matches. `no_classes()` gives an all-zero classification.
- `socksnio.parser_utils`: `strcmpi(text)` builds a definition that compares its input
  with `text`, ignoring ASCII case. It emits `StringCmpEvent.MAYEQ`, `EQ` or `NEQ`.
  `strcmpi_event_name()` describes an event.
- `socksnio.hello`: `HelloParser` parses the SOCKSv5 method-selection message and calls
  a callback for every offered method. It stops in `HelloState.DONE` or
  `HelloState.ERROR_UNSUPPORTED_VERSION`. `is_done()` and `is_error()` classify a state.
  `marshall(buffer, method)` writes the two-byte reply and raises `ValueError` if it
  does not fit.
- `socksnio.request`: `RequestParser` fills a `Request` with the command, the address
  type, the raw address bytes and the port. `Request.host` gives the address as text.
  `marshall(buffer, status)` writes a ten-byte reply. `errno_to_socks()` maps errno
  values to a `ResponseStatus`. `resolve(request)` returns `(family, sockaddr)` and
  raises `ResolveError` when a name cannot be resolved or the address type is not
  supported.
- `socksnio.netutils`: `sockaddr_to_human(address, size)` formats a socket address
  tuple as `host:port`, truncated to `size - 1` characters. `sock_blocking_write()`
  sends a buffer's pending bytes. `sock_blocking_copy()` relays one socket to another
  until end of stream.
- `socksnio.selector`: `Selector` multiplexes up to 1024 descriptors with `select(2)`.
  - Register a descriptor with an `FdHandler` (read, write, block and close callbacks),
    an `Interest` and attached data. Callbacks receive a `SelectorKey`.
  - `notify_block(fd)` may be called from any thread. The descriptor's `handle_block`
    then runs in the next `select()`.
  - Failures raise `SelectorError`, whose `status` is a `SelectorStatus`.
  - `Selector` is a context manager. `close()` unregisters everything.
- `socksnio.stm`: `StateMachine` runs a table of `StateDefinition`s. It calls
  arrival/departure hooks and read, write and block handlers that return the next
  state id.

## Installation

```
pip install .
```

## Example

```python
from socksnio.buffer import Buffer
from socksnio.hello import HelloParser, HelloState, marshall

selected = []
parser = HelloParser(selected.append)

buf = Buffer(16)
buf.write(bytes([0x05, 0x01, 0x00]))
assert parser.consume(buf) is HelloState.DONE
assert selected == [0x00]

out = Buffer(16)
marshall(out, 0x00)
assert bytes(out.readable()) == b"\x05\x00"
```

## What it does not do

This package is a library of parts. It has no proxy server that accepts connections
and relays them, and it installs no command. It also does not implement SOCKS
authentication methods other than method selection. To build a proxy, combine
`Selector`, `StateMachine`, the parsers and the buffers in your own program.

## Running the tests

```
pip install .[test]
pytest
```