"""
blocks.py - Block definition for the chainy hash chain.
"""
import hashlib
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict

from .exceptions import BlockNotValid, ClockError, DecodeError

# Serialized field order of a block
BLOCK_FIELDS = ("offset", "data", "timestamp", "hash", "previous_hash")
MAX_UINT64 = 2**64 - 1


def calculate_hash(offset: int, data: str, timestamp: int, previous_hash: str) -> str:
    """
    Compute the SHA-1 hex digest of a block's fields.

    The fields are concatenated without separators in the order
    offset, data, timestamp, previous_hash.
    """
    content = f"{offset}{data}{timestamp}{previous_hash}"
    return hashlib.sha1(content.encode("utf-8")).hexdigest()


def current_timestamp() -> int:
    """
    Return the current wall-clock time as whole seconds since the Unix epoch.

    Raises:
        ClockError: If the clock cannot be read or is set before the epoch.
    """
    try:
        now = time.time()
    except OSError as e:
        raise ClockError(f"system clock could not be read: {e}") from e
    if now < 0:
        raise ClockError(f"system clock is before the Unix epoch ({now})")
    return int(now)


@dataclass(frozen=True)
class Block:
    """
    A single record of the chain, sealed by the hash of its other fields.
    """

    offset: int
    data: str
    timestamp: int
    hash: str
    previous_hash: str

    @classmethod
    def new(cls, offset: int, data: str, previous_hash: str) -> "Block":
        """
        Create a block stamped with the current time and compute its hash.
        """
        timestamp = current_timestamp()
        return cls(
            offset=offset,
            data=data,
            timestamp=timestamp,
            hash=calculate_hash(offset, data, timestamp, previous_hash),
            previous_hash=previous_hash,
        )

    def compute_hash(self) -> str:
        return calculate_hash(self.offset, self.data, self.timestamp, self.previous_hash)

    def validate(self) -> None:
        """
        Recompute the hash and compare it with the stored one.

        Raises:
            BlockNotValid: If the stored hash does not match the block content.
        """
        if self.compute_hash() != self.hash:
            raise BlockNotValid(
                f"block at offset {self.offset} has been modified",
                details={"offset": self.offset, "hash": self.hash},
                offset=self.offset,
            )

    def to_dict(self) -> Dict[str, Any]:
        fields = asdict(self)
        return {name: fields[name] for name in BLOCK_FIELDS}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Block":
        """
        Build a block from its serialized form without checking the hash.

        Raises:
            DecodeError: If fields are missing, unexpected or of the wrong type.
        """
        if not isinstance(raw, dict):
            raise DecodeError(f"block must be an object, got {type(raw).__name__}")
        missing = [name for name in BLOCK_FIELDS if name not in raw]
        unknown = sorted(set(raw) - set(BLOCK_FIELDS))
        if missing or unknown:
            raise DecodeError(
                "block fields do not match",
                details={"missing": missing, "unknown": unknown},
            )
        for name in ("offset", "timestamp"):
            value = raw[name]
            # bool is an int subclass but never a valid counter
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_UINT64:
                raise DecodeError(f"block field '{name}' must be an unsigned 64-bit integer, got {value!r}")
        for name in ("data", "hash", "previous_hash"):
            if not isinstance(raw[name], str):
                raise DecodeError(f"block field '{name}' must be a string, got {type(raw[name]).__name__}")
            try:
                raw[name].encode("utf-8")
            except UnicodeEncodeError as e:
                raise DecodeError(f"block field '{name}' is not valid UTF-8 text: {e}") from e
        return cls(**{name: raw[name] for name in BLOCK_FIELDS})
