# chordring

A small Chord distributed hash table. Ring members talk to each other over
XML-RPC. Each member stores file names under the SHA-1 hash of the name. An
HTTPS front end accepts uploaded files and forwards them to the member that
owns them. The package also has a few helpers for sharded key/value setups:
`key_to_shard`, `ShardConfig`, `Err` and an in-memory `Persister`.

It needs nothing outside the standard library.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Running a node

Start a new ring on port 8080:

```
chordring -p 8080
```

Join an existing ring through a member on another machine:

```
chordring -p 8081 -ja 192.0.2.10 -jp 8080
```

A node answers XML-RPC calls on its port. It serves HTTPS on the port after
that one. It reads these certificate files from the working directory:

- `secure_chord.crt` and `secure_chord.key`: the HTTPS server's certificate and key.
- `client.crt`: the CA used to check client certificates, when a client sends one.
- `client.crt` and `client.key`, with `secure_chord.crt` as the trusted CA: used by
  the node when it uploads files to other members.

If the server certificate files cannot be loaded, the node does not start. If
the client certificate cannot be loaded, the node still runs, but `storefile`
records the file name without uploading the file.

### Options

| option          | meaning                                                           |
|-----------------|-------------------------------------------------------------------|
| `-a <ip>`       | address to announce; defaults to the local outbound IP address    |
| `-p <port>`     | port to listen on (default 8080)                                  |
| `-ja <ip>`      | address of a member to join through                               |
| `-jp <port>`    | port of that member                                               |
| `-i <id>`       | identifier to record for the node; used only if 48 characters long |
| `-d`            | debugging switch, recorded on the node                            |
| `-ts`, `-tff`, `-tcp`, `-s`, `-r` | stabilize, fix-fingers and check-predecessor intervals (ms), backup interval (minutes), successor count |

Out-of-range values for `-ts`, `-tff`, `-tcp`, `-s` and `-r` are replaced by
their defaults. These five options are parsed and checked only: the node runs
its upkeep every 0.1 seconds and keeps 32 successors whatever they say. The
position of a node on the ring always comes from the hash of its address.

### Commands

Once the node is running, type commands on standard input:

| command                 | effect                                                      |
|-------------------------|-------------------------------------------------------------|
| `storefile <path> <v>`  | upload the file at `<path>` and record its name on the owning node; `<v>` is required but unused |
| `lookup <key>`          | find the owning node and print what it stores under `<key>` |
| `del <key>`             | delete `<key>` from the ring                                |
| `putrandom [n]`         | store `n` randomly named entries (default 1)                |
| `printstate`            | print this node's data, successors, predecessor and fingers |
| `backup`                | write this node's pairs to `backup/<id>.txt`                |
| `recover`               | read them back from that file                               |
| `remove`                | delete this node's backup file                              |
| `help [command]`        | list commands or explain one                                |
| `quit`                  | hand all pairs to the successor, stop and delete the backup file |

`port` is accepted, but always refused while a node is running. Any other word
prints the help for that word. `quit` is also what happens at the end of input.

### The HTTPS front end

- `GET /` returns a welcome line.
- `GET /<name>` serves `<name>` from the working directory if it is there.
  Otherwise it forwards the request to the member that owns the name and
  returns that member's answer. Only `html`, `txt`, `gif`, `jpeg`, `jpg` and
  `css` files are served; other types get a 400 answer.
- `POST /` with a multipart form field `myFile` saves the file in the working
  directory and answers 201. If another member owns the file, the node sends
  it on to that member.
- Other methods get a 501 answer.

## Using the library

```python
from chordring.hashing import hash_key, inclusive_between, finger_entry
from chordring.sharding import key_to_shard, ShardConfig
from chordring.persister import Persister

ident = hash_key("notes.txt")
owned = inclusive_between(ident, hash_key("192.0.2.1:8080"), hash_key("192.0.2.2:8080"))
shard = key_to_shard("apple")          # first byte modulo 10
config = ShardConfig()                 # number 0, every shard on group 0

store = Persister()
store.save(b"state", b"snapshot")
assert store.copy().read_snapshot() == b"snapshot"
```

- `chordring.command.Command` drives a node in code with the same operations
  as the prompt. It raises `CommandError` for wrong arguments or state.
- `chordring.server.Server` serves a `chordring.node.Node` over XML-RPC.
- `chordring.rpc` holds the client calls (`find`, `get`, `delete`,
  `put_file`, `ping` and others), which raise `ChordError` on failure.
- `chordring.transfer` and `chordring.web` hold the HTTPS upload client and
  the file server.

## What it does not do

- The prompt has no `create` or `join` command. The node creates or joins a
  ring once, at start-up, from the command-line options.
- `showkey`, `showaddr` and `showall` appear in the help text, but they are
  not commands.
- Backups are written only when `backup` is typed. They are read back when a
  node creates a ring, or when `recover` is typed.
- The sharding module provides types and the key-to-shard mapping only. There
  is no consensus protocol, no shard controller service and no sharded
  key/value server. `Persister` only keeps bytes in memory.