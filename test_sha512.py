import hashlib
import random
from pathlib import Path

import pytest
import yaml

from constants import BLOCK_SIZE, H0, MAX_MESSAGE_BYTES
from sha512 import (
    LengthOverflow,
    Sha512,
    Sha512Engine,
    build_message_schedule,
    decimal_digest,
    expand_message_schedule,
    hexdigest_from_state,
    new,
    pad_message,
    padded_length,
    sha512,
    sha512_after,
    sha512_before,
    sha512_hex,
    split_into_blocks,
    unpad_message,
)


def _load_vectors():
    with (Path(__file__).parent / "test_vectors.yaml").open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)["vectors"]


VECTORS = _load_vectors()
SHORT_VECTORS = [v for v in VECTORS if v["repeat"] == 1]

# Lengths around the 111/112 byte boundary and whole blocks.
LENGTHS = [0, 1, 3, 55, 56, 63, 64, 110, 111, 112, 113, 127, 128, 129, 239, 240, 255, 256, 1000]


def _message(length: int) -> bytes:
    return bytes((i * 31 + 7) & 0xFF for i in range(length))


#
# Known answers
#

@pytest.mark.parametrize("vector", SHORT_VECTORS, ids=[v["name"] for v in SHORT_VECTORS])
def test_known_answer(vector):
    message = vector["message"].encode("ascii") * vector["repeat"]
    assert sha512(message).hex() == vector["digest"]
    assert sha512_hex(message) == vector["digest"]


def test_million_a_streamed():
    vector = next(v for v in VECTORS if v["name"] == "million-a")
    h = Sha512()
    chunk = vector["message"].encode("ascii") * 1000
    for _ in range(vector["repeat"] // 1000):
        h.update(chunk)
    assert h.hexdigest() == vector["digest"]


@pytest.mark.parametrize("length", LENGTHS)
def test_matches_hashlib(length):
    message = _message(length)
    assert sha512(message) == hashlib.sha512(message).digest()


def test_uppercase_hex():
    assert sha512_hex(b"abc", uppercase=True) == hashlib.sha512(b"abc").hexdigest().upper()


#
# Padding
#

@pytest.mark.parametrize("length", LENGTHS)
def test_padding_alignment(length):
    padded = pad_message(_message(length))
    assert (len(padded) * 8) % 1024 == 0
    assert len(padded) >= length + 9
    assert len(padded) == padded_length(length)


@pytest.mark.parametrize("length", LENGTHS)
def test_padding_length_field_recovers_bit_length(length):
    padded = pad_message(_message(length))
    assert int.from_bytes(padded[-16:], byteorder="big") == length * 8
    assert padded[-16:-8] == b"\x00" * 8
    assert padded[length] == 0x80


def test_empty_message_pads_to_one_block():
    padded = pad_message(b"")
    assert len(padded) == BLOCK_SIZE
    assert padded[0] == 0x80
    assert padded[1:] == b"\x00" * 127


def test_111_bytes_pads_to_one_block():
    padded = pad_message(b"x" * 111)
    assert len(padded) == 128
    assert padded[111] == 0x80
    assert int.from_bytes(padded[112:], byteorder="big") == 888


def test_112_bytes_pads_to_two_blocks():
    padded = pad_message(b"x" * 112)
    assert len(padded) == 256
    assert padded[112] == 0x80
    assert padded[113:240] == b"\x00" * 127
    assert int.from_bytes(padded[240:], byteorder="big") == 896


@pytest.mark.parametrize("length,blocks", [(111, 1), (112, 2)])
def test_boundary_block_counts(length, blocks):
    engine = Sha512Engine.initialize()
    digest = engine.hash(b"x" * length)
    assert engine.block_count() == blocks
    assert digest == hashlib.sha512(b"x" * length).digest()


def test_padding_accepts_bytearray_and_memoryview():
    assert pad_message(bytearray(b"abc")) == pad_message(b"abc")
    assert pad_message(memoryview(b"abc")) == pad_message(b"abc")


def test_padding_rejects_text():
    with pytest.raises(TypeError):
        pad_message("abc")


def test_length_overflow_at_bound():
    assert padded_length(MAX_MESSAGE_BYTES) % BLOCK_SIZE == 0
    with pytest.raises(LengthOverflow):
        padded_length(MAX_MESSAGE_BYTES + 1)
    with pytest.raises(ValueError):
        padded_length(2 ** 61)


@pytest.mark.parametrize("length", LENGTHS)
def test_unpad_recovers_message(length):
    message = _message(length)
    assert unpad_message(pad_message(message)) == message


@pytest.mark.parametrize(
    "padded",
    [
        b"",
        b"\x80" + b"\x00" * 126,
        # Length field claims 4 bytes but the marker sits after 3.
        b"abc\x80" + b"\x00" * 108 + (32).to_bytes(16, "big"),
        # Non-zero byte inside the zero run.
        b"abc\x80\x01" + b"\x00" * 107 + (24).to_bytes(16, "big"),
        # Bit length not a multiple of 8.
        b"abc\x80" + b"\x00" * 108 + (25).to_bytes(16, "big"),
    ],
)
def test_unpad_rejects_malformed_padding(padded):
    with pytest.raises(ValueError):
        unpad_message(padded)


def test_split_into_blocks():
    blocks = split_into_blocks(pad_message(b"x" * 112))
    assert [len(b) for b in blocks] == [128, 128]
    with pytest.raises(ValueError):
        split_into_blocks(b"\x00" * 100)


#
# Message schedule
#

def test_schedule_first_words_are_big_endian():
    block = bytes(range(128))
    ws = build_message_schedule(block)
    assert len(ws) == 80
    assert ws[0] == 0x0001020304050607
    assert ws[15] == 0x78797A7B7C7D7E7F


def test_schedule_rejects_wrong_block_size():
    with pytest.raises(ValueError):
        build_message_schedule(b"\x00" * 64)


def test_expand_schedule_keeps_input_and_wraps():
    w = [0xFFFFFFFFFFFFFFFF] * 16
    schedule = expand_message_schedule(w)
    assert schedule[:16] == w
    assert all(0 <= word < 2 ** 64 for word in schedule)
    assert expand_message_schedule(w, rounds=20) == schedule[:20]
    assert expand_message_schedule(w, rounds=10) == w[:10]
    with pytest.raises(ValueError):
        expand_message_schedule([0] * 15)


#
# Engine
#

def test_initialize_sets_iv():
    engine = Sha512Engine.initialize()
    assert engine.state == H0
    assert engine.block_count() == 0


def test_engine_is_single_use():
    engine = Sha512Engine.initialize()
    digest = engine.hash(b"abc")
    assert engine.block_count() == 1
    with pytest.raises(RuntimeError):
        engine.hash(b"abc")
    # The finished state is left untouched.
    assert engine.state == tuple(
        int.from_bytes(digest[i : i + 8], "big") for i in range(0, 64, 8)
    )


def test_before_after_pipeline_matches_sha512():
    from compress import compress80, update_hash_state

    state, schedules = sha512_before(b"x" * 200)
    assert state == H0
    assert len(schedules) == 2
    for ws in schedules:
        state = update_hash_state(state, *compress80(*state, ws))
    assert sha512_after(state) == sha512(b"x" * 200)


def test_determinism():
    message = _message(300)
    digests = {sha512(message) for _ in range(5)}
    assert len(digests) == 1


@pytest.mark.parametrize("length", LENGTHS)
def test_digest_is_64_bytes(length):
    assert len(sha512(_message(length))) == 64


def test_single_bit_flips_change_digest():
    rng = random.Random(512)
    for length in (1, 3, 111, 112, 300):
        message = bytearray(_message(length))
        base = sha512(bytes(message))
        for _ in range(8):
            bit = rng.randrange(length * 8)
            flipped = bytearray(message)
            flipped[bit // 8] ^= 0x80 >> (bit % 8)
            assert sha512(bytes(flipped)) != base


#
# Formatting
#

def test_hexdigest_pads_each_word():
    state = (1, 2, 3, 4, 5, 6, 7, 0xFFFFFFFFFFFFFFFF)
    hex_digest = hexdigest_from_state(state)
    assert len(hex_digest) == 128
    assert hex_digest.startswith("0000000000000001")
    assert hex_digest.endswith("ffffffffffffffff")
    assert hexdigest_from_state(state, uppercase=True).endswith("FFFFFFFFFFFFFFFF")


def test_decimal_digest_concatenates_words():
    assert decimal_digest((1, 22, 333, 0, 0, 0, 0, 10)) == "122333000010"


#
# Streaming
#

@pytest.mark.parametrize("length", [0, 1, 111, 112, 128, 129, 300])
def test_streaming_matches_single_shot_for_every_split(length):
    message = _message(length)
    expected = sha512(message)
    for split in range(0, length + 1, max(1, length // 13)):
        h = Sha512()
        h.update(message[:split])
        h.update(message[split:])
        assert h.digest() == expected


def test_streaming_byte_at_a_time():
    message = _message(257)
    h = new()
    for i in range(len(message)):
        h.update(message[i : i + 1])
    assert h.block_count() == 2
    assert h.hexdigest() == hashlib.sha512(message).hexdigest()


def test_digest_does_not_finalize():
    h = Sha512(b"ab")
    first = h.digest()
    assert first == sha512(b"ab")
    h.update(b"c")
    assert h.digest() == sha512(b"abc")


def test_copy_is_independent():
    h = Sha512(b"abc")
    clone = h.copy()
    clone.update(b"def")
    assert h.digest() == sha512(b"abc")
    assert clone.digest() == sha512(b"abcdef")


def test_streaming_attributes():
    h = new(b"abc")
    assert h.name == "sha512"
    assert h.digest_size == 64
    assert h.block_size == 128


def test_streaming_rejects_text():
    with pytest.raises(TypeError):
        Sha512().update("abc")


@pytest.mark.parametrize("data", ["", "abc", None, 0])
def test_streaming_constructor_rejects_non_bytes(data):
    with pytest.raises(TypeError):
        Sha512(data)
    with pytest.raises(TypeError):
        new(data)


def test_streaming_constructor_accepts_empty_bytes():
    assert Sha512(b"").digest() == sha512(b"")
    assert new(bytearray()).digest() == sha512(b"")


def test_streaming_length_overflow():
    h = Sha512()
    h._counter = MAX_MESSAGE_BYTES
    with pytest.raises(LengthOverflow):
        h.update(b"a")
    # The rejected update leaves the hasher unchanged.
    assert h._counter == MAX_MESSAGE_BYTES
    assert h._buffer == b""
