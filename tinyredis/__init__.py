"""RESP protocol, data structures, a keyspace with expiry and append-only file persistence."""

__version__ = "0.1.0"