import pytest

from chordring.sharding import NSHARDS, Err, ShardConfig, key_to_shard


def test_shard_count():
    assert NSHARDS == 10
    assert key_to_shard(chr(NSHARDS)) == 0
    assert key_to_shard(chr(19)) == 9


def test_err_values():
    assert Err.OK == "OK"
    assert Err.ERR_NO_KEY.value == "ErrNoKey"
    assert Err.ERR_WRONG_GROUP.value == "ErrWrongGroup"
    assert Err.ERR_WRONG_LEADER.value == "ErrWrongLeader"
    assert Err("ErrNoKey") is Err.ERR_NO_KEY


def test_empty_key_is_shard_zero():
    assert key_to_shard("") == 0


def test_digit_keys_cover_all_shards():
    assert {key_to_shard(str(i)) for i in range(NSHARDS)} == set(range(NSHARDS))


@pytest.mark.parametrize("key", ["a", "apple", "Zebra", "9x", "ünïcode"])
def test_shard_depends_on_first_character_only(key):
    shard = key_to_shard(key)
    assert 0 <= shard < NSHARDS
    assert key_to_shard(key[0]) == shard
    assert key_to_shard(key + "tail") == shard


def test_initial_config():
    config = ShardConfig()
    assert config.num == 0
    assert config.shards == [0] * NSHARDS
    assert config.groups == {}


def test_config_rejects_wrong_shard_count():
    with pytest.raises(ValueError):
        ShardConfig(shards=[0] * (NSHARDS - 1))


def test_configs_compare_by_value_and_copy_inputs():
    groups = {1: ["x", "y", "z"]}
    shards = [1] * NSHARDS
    a = ShardConfig(1, shards, groups)
    groups[1].append("w")
    shards[0] = 2
    assert a == ShardConfig(1, [1] * NSHARDS, {1: ["x", "y", "z"]})
    assert a.groups[1] == ["x", "y", "z"]