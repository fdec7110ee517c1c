"""SHA-1 identifiers on the Chord ring and interval tests on that circle."""

from __future__ import annotations

import hashlib

KEY_SIZE = 160
HASH_MOD = 2**KEY_SIZE


def hash_key(text: str) -> int:
    """Return the SHA-1 digest of ``text`` as an unsigned integer."""
    return int.from_bytes(hashlib.sha1(text.encode("utf-8")).digest(), "big")


def finger_entry(start_id: int, index: int) -> int:
    """Return the ring position ``start_id + 2**index`` modulo the ring size."""
    return (start_id + 2**index) % HASH_MOD


def between(ident: int, left: int, right: int, inclusive: bool) -> bool:
    """Test ``ident`` against ``(left, right]`` or ``(left, right)`` on the ring."""
    if inclusive:
        return inclusive_between(ident, left, right)
    return exclusive_between(ident, left, right)


def inclusive_between(ident: int, left: int, right: int) -> bool:
    """True when ``ident`` lies in the ring interval ``(left, right]``."""
    if right > left:
        return left < ident <= right
    return ident <= right or ident > left


def exclusive_between(ident: int, left: int, right: int) -> bool:
    """True when ``ident`` lies in the ring interval ``(left, right)``."""
    if right > left:
        return left < ident < right
    return ident < right or ident > left