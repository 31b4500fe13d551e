"""
chain.py - Hash chain management and persistence for chainy.
"""
import json
import logging
from pathlib import Path, PurePath
from typing import Any, Dict, Iterator, List, Optional, Union

from .blocks import MAX_UINT64, Block
from .exceptions import (
    BlockNotValid,
    ChainIOError,
    ChainNotValid,
    DataTooLong,
    DecodeError,
    OffsetOverflow,
)
from .metrics import BLOCKS_APPENDED, CHAIN_LENGTH, LOAD_COUNT, STORE_COUNT, VALIDATION_FAILURES

logger = logging.getLogger(__name__)

GENESIS_DATA = "GENESIS"
# SHA-1 of "GENESIS", kept literal for compatibility with existing chain files
GENESIS_HASH = "ce02dec31ca49f3c8f149b3b931a0155121d2ca0"
MAX_DATA_LENGTH = 64

PathLike = Union[str, PurePath]


class Chain:
    """
    An append-only sequence of Blocks rooted at a fixed genesis block.

    Example:
        chain = Chain.new()
        chain.entry("hello")
        chain.store("chain.json")
        same = Chain.load("chain.json")
    """

    def __init__(self, blocks: Optional[List[Block]] = None) -> None:
        self.chain: List[Block] = list(blocks or [])

    @classmethod
    def new(cls) -> "Chain":
        """
        Create a chain holding only the genesis block.
        """
        genesis = Block.new(0, GENESIS_DATA, GENESIS_HASH)
        return cls([genesis])

    @property
    def tail(self) -> Block:
        if not self.chain:
            raise ChainNotValid("chain has no blocks")
        return self.chain[-1]

    def entry(self, data: str) -> Block:
        """
        Append a new block holding `data` and return it.

        Raises:
            DataTooLong: If data is longer than 64 characters. The chain is left unchanged.
            OffsetOverflow: If the next offset does not fit in 64 bits.
            ChainNotValid: If the chain has no tail block to link to.
            ClockError: If the current time cannot be read.
        """
        if len(data) > MAX_DATA_LENGTH:
            raise DataTooLong(
                f"block data is {len(data)} chars, limit is {MAX_DATA_LENGTH}",
                details={"length": len(data), "limit": MAX_DATA_LENGTH},
            )
        previous_hash = self.tail.hash
        offset = self._next_offset()
        if offset > MAX_UINT64:
            raise OffsetOverflow(f"offset {offset} does not fit in an unsigned 64-bit integer")
        block = Block.new(offset, data, previous_hash)
        self._add_block(block)
        return block

    def _next_offset(self) -> int:
        return len(self.chain)

    def _add_block(self, block: Block) -> None:
        self.chain.append(block)
        BLOCKS_APPENDED.inc()
        logger.debug("Appended block %d (%s)", block.offset, block.hash)

    def validate(self) -> None:
        """
        Check the genesis anchor, every block hash and every link, oldest first.

        Stops at the first violation.

        Raises:
            ChainNotValid: On a bad genesis block or a broken link.
            BlockNotValid: When a block's stored hash does not match its content.
        """
        try:
            self._validate()
        except (BlockNotValid, ChainNotValid) as e:
            VALIDATION_FAILURES.labels(kind=type(e).__name__).inc()
            logger.warning("Chain validation failed: %s", e)
            raise

    def _validate(self) -> None:
        if not self.chain:
            raise ChainNotValid("chain has no genesis block")
        genesis = self.chain[0]
        if genesis.offset != 0:
            raise ChainNotValid(f"first block must have offset 0, got {genesis.offset}", offset=genesis.offset)
        if genesis.previous_hash != GENESIS_HASH:
            raise ChainNotValid("first block is not anchored to the genesis hash", offset=genesis.offset)
        genesis.validate()

        for previous, current in zip(self.chain, self.chain[1:]):
            current.validate()
            if previous.hash != current.previous_hash:
                raise ChainNotValid(
                    f"block at offset {current.offset} does not link to block at offset {previous.offset}",
                    details={"expected": previous.hash, "found": current.previous_hash},
                    offset=current.offset,
                )

    def to_dict(self) -> Dict[str, Any]:
        return {"chain": [block.to_dict() for block in self.chain]}

    @classmethod
    def from_dict(cls, raw: Any) -> "Chain":
        """
        Build a chain from its serialized form. Hashes are not checked here.

        Raises:
            DecodeError: If the structure or field types are wrong.
        """
        if not isinstance(raw, dict) or set(raw) != {"chain"}:
            raise DecodeError("expected an object with a single 'chain' field")
        if not isinstance(raw["chain"], list):
            raise DecodeError("'chain' field must be an array of blocks")
        return cls([Block.from_dict(item) for item in raw["chain"]])

    @classmethod
    def from_json(cls, text: str) -> "Chain":
        # ValueError covers JSONDecodeError and oversized integer literals
        try:
            raw = json.loads(text)
        except (ValueError, RecursionError) as e:
            raise DecodeError(f"chain is not valid JSON: {e}") from e
        return cls.from_dict(raw)

    def store(self, path: PathLike) -> None:
        """
        Write the chain to `path`, replacing any existing content.

        Raises:
            ChainIOError: If the file cannot be written.
        """
        file_path = Path(path)
        try:
            file_path.write_text(str(self), encoding="utf-8")
        except OSError as e:
            raise ChainIOError(f"could not write chain to '{file_path}': {e}", {"path": str(file_path)}) from e
        STORE_COUNT.inc()
        CHAIN_LENGTH.set(len(self.chain))
        logger.info("Stored chain of %d blocks to '%s'", len(self.chain), file_path)

    @classmethod
    def load(cls, path: PathLike) -> "Chain":
        """
        Read a chain from `path` and return it only if it validates.

        Raises:
            ChainIOError: If the file cannot be read.
            DecodeError: If the content is not a well-formed chain document.
            ChainNotValid: If the decoded chain fails validation.
        """
        file_path = Path(path)
        try:
            serialized = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            LOAD_COUNT.labels(outcome="decode_error").inc()
            raise DecodeError(f"chain file '{file_path}' is not UTF-8 text: {e}") from e
        except OSError as e:
            LOAD_COUNT.labels(outcome="io_error").inc()
            raise ChainIOError(f"could not read chain from '{file_path}': {e}", {"path": str(file_path)}) from e

        try:
            chain = cls.from_json(serialized)
        except DecodeError:
            LOAD_COUNT.labels(outcome="decode_error").inc()
            raise

        try:
            chain.validate()
        except BlockNotValid as e:
            LOAD_COUNT.labels(outcome="invalid").inc()
            raise ChainNotValid(f"chain in '{file_path}' is not valid: {e}", e.details, offset=e.offset) from e
        except ChainNotValid:
            LOAD_COUNT.labels(outcome="invalid").inc()
            raise

        LOAD_COUNT.labels(outcome="ok").inc()
        CHAIN_LENGTH.set(len(chain))
        logger.info("Loaded chain of %d blocks from '%s'", len(chain), file_path)
        return chain

    def __len__(self) -> int:
        return len(self.chain)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.chain)

    def __getitem__(self, index: int) -> Block:
        return self.chain[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Chain):
            return NotImplemented
        return self.chain == other.chain

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    def __repr__(self) -> str:
        return f"Chain(blocks={len(self.chain)}, tail={self.chain[-1].hash if self.chain else None!r})"
