"""Append-only file handling and the replication backlog."""