"""Thread-safe holder of a replica's persisted state and snapshot."""

from __future__ import annotations

import threading


class Persister:
    """Keeps replica state and snapshot bytes, saved together atomically."""

    def __init__(self, raft_state: bytes = b"", snapshot: bytes = b"") -> None:
        self._lock = threading.Lock()
        self._raft_state = bytes(raft_state)
        self._snapshot = bytes(snapshot)

    def copy(self) -> "Persister":
        """Return a new persister holding the same state."""
        with self._lock:
            return Persister(self._raft_state, self._snapshot)

    def read_raft_state(self) -> bytes:
        with self._lock:
            return self._raft_state

    def raft_state_size(self) -> int:
        with self._lock:
            return len(self._raft_state)

    def save(self, raft_state: bytes | None, snapshot: bytes | None) -> None:
        """Store state and snapshot together, so they never get out of step."""
        with self._lock:
            self._raft_state = bytes(raft_state or b"")
            self._snapshot = bytes(snapshot or b"")

    def read_snapshot(self) -> bytes:
        with self._lock:
            return self._snapshot

    def snapshot_size(self) -> int:
        with self._lock:
            return len(self._snapshot)