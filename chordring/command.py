"""Interactive commands that drive one ring member."""

from __future__ import annotations

import ssl
from random import randrange

from chordring import rpc
from chordring.node import Node
from chordring.server import Server

DEFAULT_PORT = rpc.DEFAULT_PORT

TOO_MANY_ARGUMENTS = "too many arguments"
FEW_ARGUMENTS = "few arguments"
ARGUMENTS_NUM = "arguments number error"
NO_SERVICE = "No service"
IN_SERVICE = "Already in service"
WRONG_COMMAND = "Wrong Command, get help from Command help"

HELP_TEXT = """Commands are:

Current Command
\thelp\t\tdisplays recognized commands<current Command>

Commands related to DHT rings:
\tport /<n>\tset the listen-on port<n>. (default  3410)
\tcreate\t\tcreate a new ring.
\tjoin <add>\tjoin an existing ring.
\tquit\t\tshut down. This quits and ends the program.

Commands related to finding and inserting keys and values
\tstorefile <k> <v>\tupload the file of the given key and value.
\tputrandom <n>\trandomly generate n <key, value> to insert.
\tlookup <k>\t\tfind the given key in the currently active ring.
\tdelete <k>\t\tthe peer deletes it from the ring.

Commands that are useful mainly for debugging:
\tprintstate\tdisplay information about the current node.
\tshowkey <k>\tsimilar to printstate, but this one finds the node responsible for <key>.
\tshowaddr <add>\tsimilar to above, but query a specific host and show its info.
\tshowall\t\twalk around the ring, dumping all in clockwise order.

Get more details of each Command, you can use order <help+Command>
eg: help printstate, then you will get details of 'printstate'
"""

_KEYS_PREAMBLE = (
    "\nNext, there are those related to finding and inserting keys and values.\n"
    "A <key> is any sequence of one or more non-space characters, as is a value.\n"
)

HELP_TOPICS = {
    "help": (
        "the simplest Command. This displays a list of recognized commands. "
        "Also, the current Command"
    ),
    "port": (
        "\nport <n> or port\n"
        "set the port that this node should listen on.\n"
        "By default, this should be port 3410, but users can set it to something else.\n"
        "This Command only works before a ring has been created or joined. "
        "After that point, trying to issue this Command is an error.\n"
    ),
    "quit": (
        "\nquit\n"
        "shut down. This quits and ends the program.\n"
        "If this was the last instance in a ring, the ring is effectively shut down.\n"
        "If this is not the last instance, it should send all of its data to its "
        "immediate successor before quitting. Other than that, it is not necessary "
        "to notify the rest of the ring when a node shuts down.\n"
    ),
    "storefile": (
        _KEYS_PREAMBLE + "\nstorefile <key> <value>\n"
        "insert the given key and value into the currently active ring.\n"
        "The instance must find the peer that is responsible for the given key "
        "using a DHT lookup operation,\n"
        "then contact that host directly and send it the key and value to be stored.\n"
    ),
    "putrandom": (
        _KEYS_PREAMBLE + "\nputrandom <n>\n"
        "randomly generate n keys (and accompanying values) and put each pair into "
        "the ring. Useful for debugging.\n"
    ),
    "lookup": (
        _KEYS_PREAMBLE + "\nlookup <key>\n"
        "find the given key in the currently active ring.\n"
        "The instance must find the peer that is responsible for the given key "
        "using a DHT lookup operation,\n"
        "then contact that host directly and retrieve the value and display it to "
        "the local user.\n"
    ),
    "delete": (
        _KEYS_PREAMBLE + "\ndelete <key>\n"
        "similar to lookup, but instead of retrieving the value and displaying it, "
        "the peer deletes it from the ring.\n"
    ),
    "printstate": (
        "\nFor debugging\n\nprintstate\n"
        "display information about the current node, including the range of keys "
        "it is responsible for,\n its predecessor and successor links, its finger "
        "table, and the actual key/value pairs that it stores.\n"
    ),
    "showkey": (
        "\nFor debugging\n\nshowkey <key>\n"
        "similar to dump, but this one finds the node responsible for <key>,\n"
        "asks it for its dump info, and displays it to the local user.\n"
        "This allows a user at one terminal to query any part of the ring.\n"
    ),
    "showaddr": (
        "\nFor debugging\n\nshowaddr <address>\n"
        "similar to above, but query a specific host and dump its info.\n"
    ),
    "showall": (
        "\nFor debugging\n\nshowall\n"
        "walk around the ring, dumping all information about every peer in the "
        "ring in clockwise order\n(display the current host, then its successor, etc).\n"
    ),
}


class CommandError(Exception):
    """A command was given the wrong arguments or issued in the wrong state."""


class Command:
    """The user-facing operations on one ring member."""

    def __init__(
        self,
        node: Node | None = None,
        server: Server | None = None,
        port: str = "",
        debug: bool = False,
        ident: str = "",
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        if node is None and server is not None:
            node = server.node
        self.node = node
        self.server = server
        self.cport = port
        self.debug = debug
        self.ident = ident
        self.ssl_context = ssl_context
        self.listening = False

    def _require_listening(self) -> None:
        if not self.listening:
            raise CommandError(NO_SERVICE)

    def _require_server(self) -> Server:
        if self.server is None:
            raise CommandError(NO_SERVICE)
        return self.server

    def port(self, *args: str) -> str:
        """Set the port to listen on; only allowed before a node exists."""
        if self.node is not None or self.listening:
            raise CommandError("CPort can't set again after calling create or join")
        if len(args) > 1:
            raise CommandError(TOO_MANY_ARGUMENTS)
        self.cport = args[0] if args else DEFAULT_PORT
        print(f"CPort set to {self.cport}")
        return self.cport

    def create(self, *args: str) -> None:
        """Start a new ring with this node alone in it."""
        if args:
            raise CommandError(TOO_MANY_ARGUMENTS)
        if self.listening:
            raise CommandError(IN_SERVICE)
        server = self._require_server()
        self.listening = True
        server.node.create()
        print("Node(created) listening at ", server.node.address)

    def join(self, *args: str) -> None:
        """Join the ring through the node whose address is given."""
        if len(args) > 1:
            raise CommandError(TOO_MANY_ARGUMENTS)
        if self.listening:
            raise CommandError(IN_SERVICE)
        server = self._require_server()
        self.listening = True
        address = args[0] if args else ""
        try:
            server.join(address)
        except rpc.ChordError:
            self.listening = False
            raise
        print("Joined at ", address)

    def quit(self, *args: str) -> None:
        """Leave the ring, handing stored keys to the successor."""
        if len(args) > 1:
            raise CommandError(TOO_MANY_ARGUMENTS)
        self._require_listening()
        self.listening = False
        if self.server is None:
            return
        try:
            self.server.quit()
        except (OSError, rpc.ChordError) as exc:
            print(f"Server Quit: {exc}")

    def dump(self, *args: str) -> str:
        """Print and return the state of the served node."""
        if args:
            raise CommandError(TOO_MANY_ARGUMENTS)
        self._require_listening()
        info = self._require_server().debug_info()
        print(info)
        return info

    def ping(self, *args: str) -> int:
        """Ping the node at the given address; return its key count."""
        if not args:
            raise CommandError(FEW_ARGUMENTS)
        if len(args) > 1:
            raise CommandError(TOO_MANY_ARGUMENTS)
        self._require_listening()
        response = rpc.ping(args[0])
        print(f"Got response {response} from Ping(3)")
        return response

    def put(self, *args: str) -> None:
        """Store the file named by the first argument in the ring."""
        if len(args) != 2:
            raise CommandError(TOO_MANY_ARGUMENTS + FEW_ARGUMENTS)
        self._require_listening()
        rpc.put_file(self.node.address, args[0], self.ssl_context)

    def get(self, *args: str) -> str:
        """Look up a key in the ring."""
        if len(args) != 1:
            raise CommandError(ARGUMENTS_NUM)
        self._require_listening()
        return rpc.get(self.node.address, args[0])

    def delete(self, *args: str) -> bool:
        """Delete a key from the ring; return whether it was present."""
        if len(args) != 1:
            raise CommandError(ARGUMENTS_NUM)
        self._require_listening()
        return rpc.delete(self.node.address, args[0])

    def help(self, *args: str) -> str:
        """Print and return help for all commands or one topic."""
        if not args:
            text = HELP_TEXT
        elif len(args) == 1:
            text = HELP_TOPICS.get(args[0], WRONG_COMMAND)
        else:
            text = WRONG_COMMAND
        print(text)
        if len(args) > 1:
            raise CommandError(TOO_MANY_ARGUMENTS)
        return text

    def backup(self, *args: str) -> None:
        """Write the node's keys to its backup file."""
        if args:
            raise CommandError(TOO_MANY_ARGUMENTS)
        self._require_listening()
        self._require_server().backup()

    def recover(self, *args: str) -> None:
        """Reload the node's keys from its backup file."""
        if args:
            raise CommandError(TOO_MANY_ARGUMENTS)
        self._require_listening()
        self._require_server().recover()

    def random(self, *args: str) -> None:
        """Store ``n`` (default 1) randomly named entries in the ring."""
        if len(args) > 1:
            raise CommandError(TOO_MANY_ARGUMENTS)
        count = 1
        if args:
            try:
                count = int(args[0])
            except ValueError as exc:
                raise CommandError(f"invalid count {args[0]!r}") from exc
        for _ in range(count):
            self.put(str(randrange(2**63)), str(randrange(2**63)))

    def remove(self, *args: str) -> None:
        """Delete the node's backup file."""
        if args:
            raise CommandError(TOO_MANY_ARGUMENTS)
        self._require_server().remove_file()