"""A member of the Chord ring: routing state, stored keys and ring upkeep."""

from __future__ import annotations

import logging
import socket
import threading
from dataclasses import dataclass
from pathlib import Path

from chordring import rpc
from chordring.hashing import (
    exclusive_between,
    finger_entry,
    hash_key,
    inclusive_between,
)

M = 160
SU_SIZE = 32
REFRESH_TIME = 0.1

logger = logging.getLogger(__name__)


def get_local_address() -> str:
    """Return the IP address of the interface used for outbound traffic."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.connect(("8.8.8.8", 80))
        return sock.getsockname()[0]


@dataclass(frozen=True)
class KeyValue:
    """One stored pair."""

    key: str
    value: str


class Node:
    """One ring member and the keys it is responsible for."""

    def __init__(
        self,
        port: str,
        debug: bool = False,
        ident: str = "",
        host: str | None = None,
        backup_dir: str | Path = "backup",
        refresh_time: float = REFRESH_TIME,
    ) -> None:
        self.host = get_local_address() if host is None else host
        self.port = port
        self.ident = ident
        self.address = f"{self.host}:{self.port}"
        self.successor = ""
        self.predecessor = ""
        self.successor_table = [""] * (SU_SIZE + 1)
        self.finger_table = [""] * (M + 1)
        self.data: dict[str, str] = {}
        self.listening = False
        self.debug = debug
        self.backup_dir = Path(backup_dir)
        self.refresh_time = refresh_time
        self._next = -1
        self._stop = threading.Event()
        self._workers: list[threading.Thread] = []

    @property
    def backup_path(self) -> Path:
        """File that holds this node's keys between runs."""
        return self.backup_dir / f"{hash_key(self.address)}.txt"

    # ring membership

    def create(self) -> None:
        """Start a new ring in which this node is alone."""
        self.predecessor = ""
        self.successor = self.address
        self.successor_table = [self.address] * (SU_SIZE + 1)
        self.recover()
        self._start_maintenance()

    def join(self, address: str) -> None:
        """Join the ring that the node at ``address`` belongs to."""
        self.predecessor = ""
        try:
            found = rpc.find_successor(address, hash_key(self.address))
        except rpc.ChordError as exc:
            print(f"node Join-findsuccessor {exc}")
            print("Address is ", self.address, address)
            raise
        self.successor = found
        self._fix_successor_table()
        try:
            rpc.notify(self.successor, self.address)
        except rpc.ChordError:
            print("Join but Notify err")
        try:
            rpc.call(self.successor, "Node.Besplited", self.address)
        except rpc.ChordError:
            print("split err")
        self._start_maintenance()

    def split_to(self, address: str) -> bool:
        """Hand the keys that now belong to the node at ``address`` over to it."""
        new_id = hash_key(address)
        own_id = hash_key(self.address)
        moving = [
            KeyValue(key, value)
            for key, value in list(self.data.items())
            if inclusive_between(new_id, hash_key(key), own_id)
        ]
        for pair in moving:
            try:
                rpc.call(address, "Node.Put", pair.key, pair.value)
            except rpc.ChordError as exc:
                print(f"Splited err: {exc}")
            self.data.pop(pair.key, None)
        return True

    def merge(self) -> None:
        """Push every stored pair to the successor, retrying until each is taken."""
        if not self.successor:
            return
        for key, value in list(self.data.items()):
            while True:
                try:
                    rpc.call(self.successor, "Node.Put", key, value)
                    break
                except rpc.ChordError:
                    self._stop.wait(self.refresh_time)

    def copy_successors(self) -> list[str]:
        """Return a copy of the successor list."""
        return list(self.successor_table)

    def _fix_successor_table(self) -> None:
        table = rpc.call(self.successor, "Node.CopySuccessor", False)
        self.successor_table = [self.successor, *list(table)[:SU_SIZE]]

    # routing

    def _alive(self, address: str) -> bool:
        try:
            rpc.ping(address)
        except rpc.ChordError:
            return False
        return True

    def _closest_preceding_node(self, ident: int) -> str:
        own_id = hash_key(self.address)
        for finger in reversed(self.finger_table[:M]):
            if not self._alive(finger):
                continue
            if exclusive_between(hash_key(finger), own_id, ident):
                return finger
        logger.debug("no preceding finger for %s on %s", ident, self.address)
        return self.address

    def find_successor(self, ident: int | str) -> str:
        """Return the node responsible for ring position ``ident``."""
        ident = int(ident)
        if self._alive(self.successor) and inclusive_between(
            ident, hash_key(self.address), hash_key(self.successor)
        ):
            return self.successor
        for prev, cur in zip(self.successor_table, self.successor_table[1:]):
            if self._alive(cur) and inclusive_between(
                ident, hash_key(prev), hash_key(cur)
            ):
                return cur
        next_addr = self._closest_preceding_node(ident)
        if not next_addr:
            raise rpc.ChordError("findFingerTable Err")
        return rpc.find_successor(next_addr, ident)

    def get_predecessor(self) -> str:
        """Return the predecessor; raise when there is none."""
        if not self.predecessor:
            raise rpc.ChordError("Predecessor is Empty")
        return self.predecessor

    def notify(self, new_predecessor: str) -> bool:
        """Accept ``new_predecessor`` if it is closer than the current one."""
        if not self.predecessor or exclusive_between(
            hash_key(new_predecessor),
            hash_key(self.predecessor),
            hash_key(self.address),
        ):
            self.predecessor = new_predecessor
            return True
        return False

    # stored pairs

    def put(self, key: str, value: str) -> bool:
        self.data[key] = value
        return True

    def get(self, key: str) -> str:
        """Return the value under ``key``, or "" when absent."""
        return self.data.get(key, "")

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""
        return self.data.pop(key, None) is not None

    def ping(self) -> int:
        """Answer a liveness check with the number of stored keys."""
        return len(self.data)

    # persistence

    def backup(self) -> None:
        """Write the stored pairs to the backup file, one ``key value`` per line."""
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        if self.predecessor != self.address and self._alive(self.predecessor):
            self.split_to(self.predecessor)
        with self.backup_path.open("w", encoding="utf-8") as fh:
            for key, value in list(self.data.items()):
                fh.write(f"{key} {value}\n")

    def recover(self) -> None:
        """Load pairs from the backup file, creating it when missing."""
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        self.backup_path.touch(exist_ok=True)
        words = self.backup_path.read_text(encoding="utf-8").split()
        for key, value in zip(words[0::2], words[1::2]):
            self.data[key] = value

    # periodic upkeep

    def _start_maintenance(self) -> None:
        if not self.listening:
            return
        if any(worker.is_alive() for worker in self._workers):
            return
        self._stop = threading.Event()
        tasks = (
            self._check_survival,
            self._check_predecessor,
            self._stabilize,
            self._fix_fingers,
        )
        self._workers = [
            threading.Thread(target=self._every_tick, args=(task,), daemon=True)
            for task in tasks
        ]
        for worker in self._workers:
            worker.start()

    def _every_tick(self, task) -> None:
        while self.listening and not self._stop.wait(self.refresh_time):
            if not self.listening:
                return
            try:
                task()
            except rpc.ChordError as exc:
                logger.debug("[%s] %s failed: %s", self.address, task.__name__, exc)

    def _check_survival(self) -> None:
        try:
            rpc.call(self.address, "Node.Ping", 51)
        except rpc.ChordError:
            self.listening = False

    def _check_predecessor(self) -> None:
        if not self._alive(self.predecessor):
            self.predecessor = ""

    def _fix_fingers(self) -> None:
        own_id = hash_key(self.address)
        response = ""
        while True:
            self._next += 1
            if self._next >= M:
                self._next = -1
                return
            ident = finger_entry(own_id, self._next)
            if not response:
                try:
                    response = self.find_successor(ident)
                except rpc.ChordError as exc:
                    logger.debug("fixFingertable err at: %s", exc)
                    return
                if not response:
                    return
            if inclusive_between(ident, own_id, hash_key(response)):
                self.finger_table[self._next] = response
            else:
                self._next -= 1
                return

    def _stabilize(self) -> None:
        for cur in list(self.successor_table):
            if not self._alive(cur):
                continue
            try:
                pre = rpc.get_predecessor(cur)
            except rpc.ChordError:
                pass
            else:
                if exclusive_between(
                    hash_key(pre), hash_key(self.address), hash_key(cur)
                ):
                    self.successor = pre
            try:
                self._fix_successor_table()
            except rpc.ChordError as exc:
                self.successor = self.successor_table[0]
                logger.debug("[%s]Stabilize fix SuccessorTable %s", self.address, exc)
                continue
            try:
                rpc.notify(self.successor, self.address)
            except rpc.ChordError as exc:
                logger.debug("[%s]Stabilize Notify %s", self.address, exc)
            return
        logger.debug("Successor List Failed")

    def stop(self) -> None:
        """Stop the periodic upkeep."""
        self.listening = False
        self._stop.set()

    def dump(self) -> str:
        """Return a readable summary of this node's state."""
        return (
            f"\nID: {hash_key(self.address)}\t\tAddress: {self.address}\n"
            f"S: {self.successor}\t\tSuccessors: {self.successor_table}\n"
            f"Next: {self._next}\tPredecessor: {self.predecessor}\n"
            f"Data: {self.data}\n"
            f"Finger: {self.finger_table[:60]}\n"
        )