"""Building blocks for Redis-compatible servers and clients: RESP replies and parser, pub/sub, client, TCP server and supporting utilities."""

__version__ = "0.1.0"