"""Building blocks for a non-blocking SOCKSv5 proxy: buffer, parsers, selector and state machine."""

__version__ = "0.1.0"

__all__ = [
    "buffer",
    "parser",
    "parser_utils",
    "hello",
    "request",
    "netutils",
    "selector",
    "stm",
]