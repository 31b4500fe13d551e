"""
chainy - Tamper-evident append-only log built on a SHA-1 hash chain.

This package provides the block and chain types, their persistence, and the error hierarchy.
"""

from .blocks import Block, calculate_hash
from .chain import GENESIS_HASH, MAX_DATA_LENGTH, Chain
from .exceptions import (
    BlockNotValid,
    ChainIOError,
    ChainNotValid,
    ChainyError,
    ClockError,
    DataTooLong,
    DecodeError,
    OffsetOverflow,
)
from .metrics import start_metrics_server

__all__ = [
    "Block",
    "Chain",
    "calculate_hash",
    "GENESIS_HASH",
    "MAX_DATA_LENGTH",
    "ChainyError",
    "ClockError",
    "DataTooLong",
    "OffsetOverflow",
    "BlockNotValid",
    "ChainNotValid",
    "ChainIOError",
    "DecodeError",
    "start_metrics_server",
]

__version__ = "0.1.0"
