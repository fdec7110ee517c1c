"""Serves a node's remote methods over XML-RPC and manages its lifetime."""

from __future__ import annotations

import logging
import os
import socketserver
import threading
from datetime import datetime
from xmlrpc.server import SimpleXMLRPCServer

from chordring.hashing import hash_key
from chordring.node import Node

logger = logging.getLogger(__name__)


class _ThreadedRPCServer(socketserver.ThreadingMixIn, SimpleXMLRPCServer):
    daemon_threads = True
    allow_reuse_address = True


def _register(listener: SimpleXMLRPCServer, node: Node) -> None:
    methods = {
        "Node.Besplited": node.split_to,
        "Node.CopySuccessor": lambda _flag=False: node.copy_successors(),
        "Node.GetSuccessors": lambda _count=0: node.copy_successors(),
        "Node.FindSuccessor": node.find_successor,
        "Node.GetPredecessor": lambda _none=False: node.get_predecessor(),
        "Node.Notify": node.notify,
        "Node.Put": node.put,
        "Node.Get": node.get,
        "Node.Del": node.delete,
        "Node.Ping": lambda _request=0: node.ping(),
    }
    for name, func in methods.items():
        listener.register_function(func, name)


class Server:
    """Exposes one node to the rest of the ring."""

    def __init__(self, node: Node, host: str = "") -> None:
        self.node = node
        self.host = host
        self.listener: SimpleXMLRPCServer | None = None
        self._thread: threading.Thread | None = None
        logger.info("-" * 63 + " <<<")
        logger.info("Init a Server at %s", datetime.now())

    def listen(self) -> None:
        """Start serving the node's methods and create a ring around it."""
        listener = _ThreadedRPCServer(
            (self.host, int(self.node.port)), logRequests=False, allow_none=True
        )
        _register(listener, self.node)
        logger.info("listen at :%s", self.node.port)
        self.listener = listener
        self.node.listening = True
        self._thread = threading.Thread(target=listener.serve_forever, daemon=True)
        self._thread.start()
        self.node.create()

    def join(self, address: str) -> None:
        """Join the ring through the node at ``address``."""
        self.node.join(address)

    def quit(self) -> None:
        """Hand the keys to the successor, stop serving and drop the backup."""
        self.node.merge()
        self.node.stop()
        if self.listener is not None:
            self.listener.shutdown()
            self.listener.server_close()
            self.listener = None
        try:
            self.remove_file()
        except OSError as exc:
            print(exc)

    def remove_file(self) -> None:
        """Delete the node's backup file."""
        os.remove(self.node.backup_path)

    def is_listening(self) -> bool:
        return self.listener is not None

    def debug_info(self) -> str:
        """Return a readable summary of the served node."""
        node = self.node
        return (
            f"\nID: {hash_key(node.address)}\n"
            f"Listening: {str(self.is_listening()).lower()} Address: {node.address}\n"
            f"Data: {node.data}\n"
            f"Successors: {node.successor_table}\n"
            f"Predecessor: {node.predecessor}\n"
            f"Fingers: {node.finger_table}\n"
        )

    def backup(self) -> None:
        self.node.backup()

    def recover(self) -> None:
        self.node.recover()