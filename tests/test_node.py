import socket

import pytest

from chordring.hashing import hash_key
from chordring.node import SU_SIZE, KeyValue, Node
from chordring.rpc import ChordError


def _free_port() -> str:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return str(sock.getsockname()[1])


@pytest.fixture
def node(tmp_path):
    return Node(_free_port(), host="127.0.0.1", backup_dir=tmp_path)


def test_address_joins_host_and_port(tmp_path):
    n = Node("8001", host="127.0.0.1", backup_dir=tmp_path)
    assert n.address == "127.0.0.1:8001"


def test_put_get_delete(node):
    assert node.put("alpha", "beta") is True
    assert node.get("alpha") == "beta"
    assert node.ping() == 1
    assert node.delete("alpha") is True
    assert node.get("alpha") == ""
    assert node.ping() == 0


def test_delete_missing_key_returns_false(node):
    assert node.delete("missing") is False


def test_get_predecessor_empty_raises(node):
    with pytest.raises(ChordError):
        node.get_predecessor()


def test_notify_sets_empty_predecessor(node):
    assert node.notify("127.0.0.1:9") is True
    assert node.get_predecessor() == "127.0.0.1:9"


def test_notify_same_predecessor_again_is_rejected(node):
    node.notify("127.0.0.1:9")
    assert node.notify("127.0.0.1:9") is False
    assert node.predecessor == "127.0.0.1:9"


def test_create_fills_successor_table(node):
    node.create()
    table = node.copy_successors()
    assert len(table) == SU_SIZE + 1
    assert set(table) == {node.address}
    assert node.successor == node.address
    assert node.backup_path.exists()


def test_copy_successors_is_a_copy(node):
    node.create()
    table = node.copy_successors()
    table[0] = "elsewhere"
    assert node.successor_table[0] == node.address


def test_backup_path_named_by_hash(node, tmp_path):
    assert node.backup_path == tmp_path / f"{hash_key(node.address)}.txt"


def test_backup_writes_pairs(node):
    node.put("alpha", "beta")
    node.backup()
    assert node.backup_path.read_text(encoding="utf-8") == "alpha beta\n"


def test_backup_recover_round_trip(node, tmp_path):
    node.put("one", "1")
    node.put("two", "2")
    node.backup()
    fresh = Node(node.port, host="127.0.0.1", backup_dir=tmp_path)
    fresh.recover()
    assert fresh.data == {"one": "1", "two": "2"}


def test_recover_drops_unpaired_trailing_word(node):
    node.backup_dir.mkdir(parents=True, exist_ok=True)
    node.backup_path.write_text("a b\nc", encoding="utf-8")
    node.recover()
    assert node.data == {"a": "b"}


def test_find_successor_without_ring_raises(node):
    with pytest.raises(ChordError):
        node.find_successor(hash_key("x"))


def test_join_unreachable_raises(node):
    with pytest.raises(ChordError):
        node.join(f"127.0.0.1:{_free_port()}")


def test_dump_mentions_address_and_data(node):
    node.put("alpha", "beta")
    text = node.dump()
    assert node.address in text
    assert "'alpha': 'beta'" in text


def test_stop_clears_listening(node):
    node.listening = True
    node.stop()
    assert node.listening is False


def test_key_value_fields():
    pair = KeyValue("k", "v")
    assert (pair.key, pair.value) == ("k", "v")