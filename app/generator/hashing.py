"""Deterministic string hashing used to derive every synthetic value.

The hash is a djb2 variant: ``h = int32(h * 33) ^ unit`` over the UTF-16 code units of the seed, starting at 5381.
The multiply is wrapped to a signed 32-bit integer after every step, so a seed maps to the same number on any
platform and across implementations that wrap the same way. Collision resistance is not a goal.
"""

DJB2_START = 5381
INT32_MAX = 2147483647
UINT32_MAX = 0xFFFFFFFF


def to_int32(value: int) -> int:
    """Wrap an integer to the signed 32-bit range."""
    value &= UINT32_MAX
    return value - 0x100000000 if value & 0x80000000 else value


def _code_units(seed: str) -> list[int]:
    data = seed.encode("utf-16-le")
    return [data[i] | (data[i + 1] << 8) for i in range(0, len(data), 2)]


def deterministic_hash(seed: str, max_value: int = INT32_MAX) -> int:
    """Map a seed string to an integer in ``[0, max_value)``."""
    value = DJB2_START
    for unit in _code_units(seed):
        value = to_int32(value * 33) ^ unit
    return abs(value) % max_value


def deterministic_hex_id(seed: str, length: int = 8) -> str:
    """Return a fixed-length lowercase hex string derived from a seed."""
    digest = deterministic_hash(seed, UINT32_MAX)
    return format(digest, "x").rjust(length, "0")[:length]
