"""Client side of the remote calls that ring members make on each other."""

from __future__ import annotations

import http.client
import os
import ssl
import xmlrpc.client
from typing import Any

from chordring.hashing import hash_key
from chordring.transfer import send_file

DEFAULT_HOST = ""
DEFAULT_PORT = "1234"
CALL_TIMEOUT = 5.0


class ChordError(Exception):
    """A remote call failed or returned an unusable answer."""


class _TimeoutTransport(xmlrpc.client.Transport):
    def __init__(self, timeout: float) -> None:
        super().__init__()
        self._timeout = timeout

    def make_connection(self, host):
        conn = super().make_connection(host)
        conn.timeout = self._timeout
        return conn


def call(address: str, method: str, *args: Any) -> Any:
    """Invoke ``method`` on the node at ``address`` and return its result."""
    if not address:
        raise ChordError("Call Err: No address")
    transport = _TimeoutTransport(CALL_TIMEOUT)
    try:
        with xmlrpc.client.ServerProxy(
            f"http://{address}", transport=transport, allow_none=True
        ) as proxy:
            return getattr(proxy, method)(*args)
    except xmlrpc.client.Fault as exc:
        raise ChordError(exc.faultString) from exc
    except (OSError, xmlrpc.client.ProtocolError, http.client.HTTPException) as exc:
        raise ChordError(str(exc)) from exc


def notify(address: str, new_predecessor: str) -> bool:
    """Tell the node at ``address`` that ``new_predecessor`` may precede it."""
    if not address:
        raise ChordError("Notify: rpc address is empty")
    return bool(call(address, "Node.Notify", new_predecessor))


def get_predecessor(address: str) -> str:
    """Return the predecessor of the node at ``address``."""
    if not address:
        raise ChordError("GetPredecessor: rpc address is empty")
    response = call(address, "Node.GetPredecessor", False)
    if not response:
        raise ChordError("GetPredecessor: rpc Empty predecessor")
    return response


def find_successor(address: str, ident: int) -> str:
    """Ask the node at ``address`` for the successor of ring position ``ident``."""
    if not address:
        raise ChordError("RPCFindSuccessor: rpc address is empty")
    return call(address, "Node.FindSuccessor", str(ident))


def ping(address: str) -> int:
    """Ping the node at ``address``; it answers with the number of keys it holds."""
    return int(call(address, "Node.Ping", 3))


def find(address: str, key: str) -> str:
    """Return the node responsible for ``key``, or "" when the lookup fails."""
    try:
        return find_successor(address, hash_key(key))
    except ChordError as exc:
        print(f"find address: {exc}")
        return ""


def put_file(address: str, file_path: str, context: ssl.SSLContext | None) -> None:
    """Store ``file_path`` in the ring through the node at ``address``.

    The file is uploaded over HTTPS when ``context`` is given; the responsible
    node then records the file name under its hash.
    """
    file_name = os.path.basename(file_path)
    file_key = str(hash_key(file_name))
    put_node = find(address, file_name)
    if not put_node:
        raise ChordError("can't get address")
    if context is not None:
        send_file(address, file_path, context)
    response = call(put_node, "Node.Put", file_name, file_key)
    print(f"Put {file_name}, {file_key} in [{put_node}]")
    if not response:
        raise ChordError("No put")


def get(address: str, key: str) -> str:
    """Look up ``key`` in the ring through the node at ``address``."""
    get_node = find(address, key)
    if not get_node:
        raise ChordError("can't get address")
    response = call(get_node, "Node.Get", key)
    print(f"Get [{get_node}] stored {response} at {key}")
    return response


def delete(address: str, key: str) -> bool:
    """Delete ``key`` from the ring; return whether it was present."""
    del_node = find(address, key)
    if not del_node:
        raise ChordError("can't get address")
    response = bool(call(del_node, "Node.Del", key))
    print(f"Del [{del_node}] KVPair({key}) is {str(response).lower()}")
    return response


def get_successors(address: str) -> list[str]:
    """Return the successor list held by the node at ``address``."""
    return list(call(address, "Node.GetSuccessors", 0))