"""Command-line entry point: start a ring member and read commands from stdin."""

from __future__ import annotations

import argparse
import ssl
import sys
import threading
from random import randrange

from chordring import rpc
from chordring.command import Command, CommandError
from chordring.hashing import hash_key
from chordring.node import Node, get_local_address
from chordring.server import Server
from chordring.transfer import client_ssl_context
from chordring.web import make_https_server

DEFAULT_LOCAL_PORT = "8080"


def split_line(line: str) -> list[str]:
    """Split a command line on spaces, dropping empty words."""
    return [word for word in line.rstrip("\r\n").split(" ") if word]


def _clamp(value: int, low: int, high: int, default: int) -> int:
    return default if value > high or value < low else value


def parse_args(argv=None) -> argparse.Namespace:
    """Parse the command-line options, replacing out-of-range values by defaults."""
    parser = argparse.ArgumentParser(prog="chordring", allow_abbrev=False)
    parser.add_argument("-a", dest="address", default="",
                        help="The IP address that the Chord client will bind to")
    parser.add_argument("-p", dest="port", default="",
                        help="The port that the Chord client will bind to and listen on")
    parser.add_argument("-ja", dest="join_address", default="",
                        help="The IP address of the machine running a Chord node")
    parser.add_argument("-jp", dest="join_port", default="",
                        help="The port that an existing Chord node is listening on")
    parser.add_argument("-ts", dest="stabilize_ms", type=int, default=30000,
                        help="The time in milliseconds between invocations of stabilize")
    parser.add_argument("-tff", dest="fix_fingers_ms", type=int, default=10000,
                        help="The time in milliseconds between invocations of fix fingers")
    parser.add_argument("-tcp", dest="check_predecessor_ms", type=int, default=40000,
                        help="The time in milliseconds between invocations of check predecessor")
    parser.add_argument("-s", dest="backup_minutes", type=int, default=1,
                        help="The time in minutes between backups")
    parser.add_argument("-r", dest="successors", type=int, default=3,
                        help="The number of successors maintained by the Chord client")
    parser.add_argument("-i", dest="ident", default="",
                        help="An identifier that overrides the one computed from the address")
    parser.add_argument("-d", dest="debug", action="store_true",
                        help="The switch for debugging print")
    opts = parser.parse_args(argv)

    if not opts.port:
        print("Local Node CPort hasn't been set\n<Setting to default (8080)>")
        opts.port = DEFAULT_LOCAL_PORT
    opts.stabilize_ms = _clamp(opts.stabilize_ms, 1, 60000, 30000)
    opts.fix_fingers_ms = _clamp(opts.fix_fingers_ms, 1, 60000, 10000)
    opts.check_predecessor_ms = _clamp(opts.check_predecessor_ms, 1, 60000, 40000)
    opts.backup_minutes = _clamp(opts.backup_minutes, 1, 10080, 1)
    opts.successors = _clamp(opts.successors, 1, 32, 3)
    return opts


def _run(command: Command, words: list[str]) -> None:
    name, args = words[0], words[1:]
    if name == "port" and not args:
        args = [str(randrange(50) + 8000)]
    actions = {
        "port": command.port,
        "storefile": command.put,
        "lookup": command.get,
        "del": command.delete,
        "backup": command.backup,
        "recover": command.recover,
        "printstate": command.dump,
        "putrandom": command.random,
        "remove": command.remove,
        "help": command.help,
    }
    action = actions.get(name)
    try:
        if action is None:
            command.help(*words)
        else:
            action(*args)
    except (CommandError, rpc.ChordError, OSError, ValueError) as exc:
        print(exc, file=sys.stderr)


def main(argv=None) -> int:
    """Run a ring member until ``quit`` or the end of input."""
    opts = parse_args(argv)
    try:
        local = get_local_address()
    except OSError as exc:
        print(f"cannot determine local address: {exc}", file=sys.stderr)
        return 1
    print(f"--------------------- <{local}> ---------------------")

    ip = opts.address
    if not ip:
        print("Local Node IP hasn't been set\n<Setting to default (localhost IP)>")
        ip = local
    address = f"{ip}:{opts.port}"
    ident = opts.ident if len(opts.ident) == 48 else str(hash_key(address))

    node = Node(opts.port, opts.debug, ident, host=ip)
    server = Server(node)
    try:
        context = client_ssl_context()
    except (OSError, ssl.SSLError) as exc:
        print("Error on setting https client;", exc)
        context = None
    command = Command(
        node=node, server=server, port=opts.port, debug=opts.debug,
        ident=ident, ssl_context=context,
    )
    print(f"<LocalNode>: address={node.address} id={ident}")

    try:
        https = make_https_server(
            ("", int(opts.port) + 1), command,
            "secure_chord.crt", "secure_chord.key", "client.crt",
        )
    except (OSError, ValueError, ssl.SSLError) as exc:
        print(f"Failed to set https Server: {exc}", file=sys.stderr)
        return 1
    try:
        server.listen()
    except OSError as exc:
        print(f"listen error: {exc}", file=sys.stderr)
        https.server_close()
        return 1
    threading.Thread(target=https.serve_forever, daemon=True).start()

    join_to = ""
    if opts.join_address or opts.join_port:
        join_to = f"{opts.join_address}:{opts.join_port}"
        print(f"<HostNode>: address={join_to} id={hash_key(join_to)}")

    try:
        try:
            if join_to:
                command.join(join_to)
            else:
                command.create()
        except (CommandError, rpc.ChordError) as exc:
            print(exc, file=sys.stderr)

        for line in sys.stdin:
            words = split_line(line)
            if not words:
                continue
            if words[0] == "quit":
                break
            _run(command, words)
        if command.listening:
            try:
                command.quit()
            except CommandError as exc:
                print(exc, file=sys.stderr)
    finally:
        https.shutdown()
        https.server_close()
    return 0


if __name__ == "__main__":
    sys.exit(main())