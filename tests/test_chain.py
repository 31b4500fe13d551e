import dataclasses

import pytest

import chainy.blocks as blocks_module
from chainy.blocks import Block, MAX_UINT64
from chainy.chain import GENESIS_HASH, MAX_DATA_LENGTH, Chain
from chainy.exceptions import BlockNotValid, ChainNotValid, ClockError, DataTooLong, OffsetOverflow


@pytest.fixture
def clock(monkeypatch):
    """Clock that advances one second per reading."""
    ticks = iter(range(1700000000, 1700001000))
    monkeypatch.setattr(blocks_module.time, "time", lambda: float(next(ticks)))


@pytest.fixture
def chain(clock):
    c = Chain.new()
    for data in ("alpha", "beta", "gamma"):
        c.entry(data)
    return c


def test_new_chain_has_genesis(clock):
    c = Chain.new()
    assert len(c) == 1
    genesis = c.chain[0]
    assert genesis.offset == 0
    assert genesis.data == "GENESIS"
    assert genesis.previous_hash == "ce02dec31ca49f3c8f149b3b931a0155121d2ca0"
    assert genesis.previous_hash == GENESIS_HASH
    c.validate()


def test_new_chain_propagates_clock_error(monkeypatch):
    monkeypatch.setattr(blocks_module.time, "time", lambda: -1.0)
    with pytest.raises(ClockError):
        Chain.new()


def test_entry_links_to_tail(clock):
    c = Chain.new()
    block = c.entry("foo")
    assert c.tail is block
    assert block.previous_hash == c.chain[0].hash
    assert block.data == "foo"


def test_entry_offsets_are_contiguous(chain):
    assert [block.offset for block in chain] == [0, 1, 2, 3]


def test_validate_after_every_entry(clock):
    c = Chain.new()
    for data in ("a", "b", "c", "d", "e"):
        c.entry(data)
        c.validate()
    assert len(c) == 6


def test_entry_length_boundary(clock):
    c = Chain.new()
    c.entry("x" * MAX_DATA_LENGTH)
    assert len(c) == 2
    with pytest.raises(DataTooLong):
        c.entry("x" * (MAX_DATA_LENGTH + 1))
    assert len(c) == 2
    c.validate()


def test_entry_counts_characters_not_bytes(clock):
    c = Chain.new()
    # 64 characters, 128 bytes in UTF-8
    c.entry("é" * 64)
    assert len(c) == 2


def test_entry_on_empty_chain_fails(clock):
    c = Chain()
    with pytest.raises(ChainNotValid):
        c.entry("foo")
    assert len(c) == 0


def test_entry_offset_overflow(clock, monkeypatch):
    c = Chain.new()
    monkeypatch.setattr(Chain, "_next_offset", lambda self: MAX_UINT64 + 1)
    with pytest.raises(OffsetOverflow):
        c.entry("foo")
    assert len(c) == 1


def test_tampered_data_is_detected(chain):
    chain.chain[2] = dataclasses.replace(chain.chain[2], data="tampered")
    with pytest.raises(BlockNotValid) as excinfo:
        chain.validate()
    assert excinfo.value.offset == 2


def test_tampered_timestamp_is_detected(chain):
    chain.chain[1] = dataclasses.replace(chain.chain[1], timestamp=chain.chain[1].timestamp + 1)
    with pytest.raises(BlockNotValid):
        chain.validate()


def test_tampered_genesis_data_is_detected(chain):
    chain.chain[0] = dataclasses.replace(chain.chain[0], data="GENESIS!")
    with pytest.raises(BlockNotValid):
        chain.validate()


def test_overwritten_hash_fails_own_check_first(chain):
    # Block 2 still points at the old hash, but block 1 is checked before the link
    chain.chain[1] = dataclasses.replace(chain.chain[1], hash="f" * 40)
    assert chain.chain[2].previous_hash != chain.chain[1].hash
    with pytest.raises(BlockNotValid) as excinfo:
        chain.validate()
    assert excinfo.value.offset == 1


def test_replaced_hash_breaks_linkage(chain):
    # Reseal block 1 with different content, block 2 still points at the old hash
    sealed = chain.chain[1]
    resealed = Block(
        offset=sealed.offset,
        data="forged",
        timestamp=sealed.timestamp,
        hash=blocks_module.calculate_hash(sealed.offset, "forged", sealed.timestamp, sealed.previous_hash),
        previous_hash=sealed.previous_hash,
    )
    chain.chain[1] = resealed
    with pytest.raises(ChainNotValid) as excinfo:
        chain.validate()
    assert excinfo.value.offset == 2


def test_genesis_must_have_offset_zero(clock):
    block = Block.new(1, "GENESIS", GENESIS_HASH)
    with pytest.raises(ChainNotValid):
        Chain([block]).validate()


def test_genesis_must_be_anchored(clock):
    block = Block.new(0, "GENESIS", "0" * 40)
    with pytest.raises(ChainNotValid):
        Chain([block]).validate()


def test_empty_chain_is_not_valid():
    with pytest.raises(ChainNotValid):
        Chain().validate()


def test_validate_stops_at_first_failure(chain):
    chain.chain[1] = dataclasses.replace(chain.chain[1], data="one")
    chain.chain[3] = dataclasses.replace(chain.chain[3], data="three")
    with pytest.raises(BlockNotValid) as excinfo:
        chain.validate()
    assert excinfo.value.offset == 1


def test_validate_does_not_mutate(chain):
    before = list(chain.chain)
    chain.validate()
    assert chain.chain == before


def test_legacy_offsets_still_validate(clock):
    # Older files numbered appended blocks from 2
    c = Chain.new()
    c.chain.append(Block.new(2, "foo", c.tail.hash))
    c.chain.append(Block.new(3, "bar", c.tail.hash))
    c.validate()


def test_str_matches_dict_encoding(chain):
    text = str(chain)
    assert text.startswith('{"chain":[{"offset":0,"data":"GENESIS","timestamp":')
    assert Chain.from_json(text) == chain
