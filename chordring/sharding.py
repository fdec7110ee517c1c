"""Shard configuration types and the key-to-shard mapping."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

NSHARDS = 10


class Err(str, enum.Enum):
    """Reply codes of the sharded key/value service."""

    OK = "OK"
    ERR_NO_KEY = "ErrNoKey"
    ERR_WRONG_GROUP = "ErrWrongGroup"
    ERR_WRONG_LEADER = "ErrWrongLeader"


@dataclass
class ShardConfig:
    """A numbered assignment of shards to replica groups.

    Configuration 0 has no groups and every shard on group 0, the invalid group.
    """

    num: int = 0
    shards: list[int] = field(default_factory=lambda: [0] * NSHARDS)
    groups: dict[int, list[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.shards = list(self.shards)
        if len(self.shards) != NSHARDS:
            raise ValueError(f"expected {NSHARDS} shards, got {len(self.shards)}")
        self.groups = {gid: list(servers) for gid, servers in self.groups.items()}


def key_to_shard(key: str) -> int:
    """Return the shard that holds ``key``, chosen by its first byte."""
    data = key.encode("utf-8")
    return data[0] % NSHARDS if data else 0