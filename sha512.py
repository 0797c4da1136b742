"""SHA-512 implementation using the `compress80` function from `compress.py`.

This module provides:

- `sha512(data: bytes) -> bytes`: compute the SHA-512 digest of arbitrary data.
- `Sha512Engine`: a single-use engine that pads the whole message up front
  and chains its 128-byte blocks through the compression function.
- `Sha512`: a hashlib-style object accepting data in several `update` calls,
  deferring padding until `digest()`.
- Forward helpers (`pad_message`, `split_into_blocks`,
  `build_message_schedule`, ...) that expose each stage on its own.
"""

from __future__ import annotations

import copy
from typing import Iterable, List, Sequence, Tuple, Union

from compress import State, compress80, update_hash_state
from constants import BLOCK_SIZE, DIGEST_SIZE, H0, MASK64, MAX_MESSAGE_BYTES, ROUNDS
from mixing import small_sigma0, small_sigma1


BytesLike = Union[bytes, bytearray, memoryview]

# Padding appends 0x80 then zeros up to 112 mod 128, then a 16-byte length.
_LENGTH_FIELD_SIZE = 16
_LENGTH_OFFSET = BLOCK_SIZE - _LENGTH_FIELD_SIZE


class LengthOverflow(ValueError):
    """Raised when a message is too long for the 64-bit bit-length count."""

    def __init__(self, length: int):
        super().__init__(
            f"message of {length} bytes exceeds the SHA-512 limit of "
            f"{MAX_MESSAGE_BYTES} bytes (2**64 - 1 bits)"
        )
        self.length = length


def _as_bytes(data: BytesLike) -> bytes:
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"expected a bytes-like object, not {type(data).__name__}")


def _check_length(length: int) -> None:
    if length > MAX_MESSAGE_BYTES:
        raise LengthOverflow(length)


def _padding_suffix(length: int) -> bytes:
    """Return the bytes appended to a `length`-byte message by the padding."""
    _check_length(length)
    zeros = (_LENGTH_OFFSET - 1 - length) % BLOCK_SIZE
    return b"\x80" + b"\x00" * zeros + (length * 8).to_bytes(_LENGTH_FIELD_SIZE, byteorder="big")


def padded_length(length: int) -> int:
    """Size in bytes of a `length`-byte message after padding."""
    _check_length(length)
    return length + 1 + (_LENGTH_OFFSET - 1 - length) % BLOCK_SIZE + _LENGTH_FIELD_SIZE


def pad_message(message: BytesLike) -> bytes:
    """Pad the input message as defined by FIPS 180-4.

    Appends a 0x80 byte, zero bytes until the length is 896 mod 1024 bits,
    then the original bit length as a 128-bit big-endian integer. The result
    length is a multiple of 128 bytes (1024 bits).

    Raises `LengthOverflow` for messages of 2**61 bytes or more.
    """
    msg_bytes = _as_bytes(message)
    return msg_bytes + _padding_suffix(len(msg_bytes))


def unpad_message(padded: BytesLike) -> bytes:
    """Strip SHA-512 padding, returning the original message.

    Raises `ValueError` when `padded` is not a well-formed padded message.
    """
    data = _as_bytes(padded)
    if not data or len(data) % BLOCK_SIZE != 0:
        raise ValueError(
            f"Padded message length must be a non-zero multiple of {BLOCK_SIZE} bytes, got {len(data)}"
        )

    length_bits = int.from_bytes(data[-_LENGTH_FIELD_SIZE:], byteorder="big")
    if length_bits % 8 != 0:
        raise ValueError(f"Length field {length_bits} is not a whole number of bytes")

    length = length_bits // 8
    if length > MAX_MESSAGE_BYTES or padded_length(length) != len(data):
        raise ValueError(f"Length field {length} bytes does not match padded size {len(data)}")

    suffix = data[length:]
    if suffix != _padding_suffix(length):
        raise ValueError("Padding bytes are malformed")

    return data[:length]


def _chunks(data: bytes, size: int) -> Iterable[bytes]:
    """Yield successive `size`-byte chunks from `data`."""
    for i in range(0, len(data), size):
        yield data[i : i + size]


def split_into_blocks(padded: BytesLike) -> List[bytes]:
    """Split a padded message into 1024-bit (128-byte) blocks."""
    data = _as_bytes(padded)
    if len(data) % BLOCK_SIZE != 0:
        raise ValueError(
            f"Padded message length must be a multiple of {BLOCK_SIZE} bytes, got {len(data)}"
        )
    return list(_chunks(data, BLOCK_SIZE))


def expand_message_schedule(w: Sequence[int], rounds: int = ROUNDS) -> List[int]:
    """Expand an initial schedule W[0..15] to W[0..(rounds-1)].

    Only the first 16 words of `w` are used; the caller's list is left intact.
    """
    if len(w) < 16:
        raise ValueError(f"Message schedule must contain at least 16 words, got {len(w)}")

    schedule = [word & MASK64 for word in w[:16]] + [0] * max(0, rounds - 16)
    for t in range(16, rounds):
        s0 = small_sigma0(schedule[t - 15])
        s1 = small_sigma1(schedule[t - 2])
        schedule[t] = (s1 + schedule[t - 7] + s0 + schedule[t - 16]) & MASK64

    return schedule[:rounds]


def build_message_schedule(block: BytesLike) -> List[int]:
    """Given a 1024-bit block, build the 80-word message schedule w[0..79]."""
    block = _as_bytes(block)
    if len(block) != BLOCK_SIZE:
        raise ValueError(f"Expected {BLOCK_SIZE}-byte block, got {len(block)}")

    # First 16 words come directly from the block (big-endian).
    w = [int.from_bytes(block[8 * t : 8 * (t + 1)], byteorder="big") for t in range(16)]
    return expand_message_schedule(w)


def _process_block(state: Sequence[int], block: bytes) -> State:
    ws = build_message_schedule(block)
    work = compress80(*state, ws)
    return update_hash_state(state, *work)


#
# Digest rendering
#

def digest_from_state(state: Sequence[int]) -> bytes:
    """Convert the final hash state into the 64-byte SHA-512 digest."""
    if len(state) != 8:
        raise ValueError(f"state must hold 8 words, got {len(state)}")
    return b"".join(word.to_bytes(8, byteorder="big") for word in state)


def hexdigest_from_state(state: Sequence[int], uppercase: bool = False) -> str:
    """Render the final state as 128 hex digits, 16 per word."""
    hex_digest = digest_from_state(state).hex()
    return hex_digest.upper() if uppercase else hex_digest


def decimal_digest(state: Sequence[int]) -> str:
    """Concatenate the decimal value of each state word.

    Debug aid only: words have no fixed width, so the result cannot be
    parsed back into a state.
    """
    return "".join(str(word) for word in state)


#
# Single-shot engine
#

class Sha512Engine:
    """Hashes exactly one message, padding it eagerly before compression."""

    def __init__(self) -> None:
        self._state: State = H0
        self._blocks = 0
        self._finished = False

    @classmethod
    def initialize(cls) -> "Sha512Engine":
        """Fresh engine holding the initial hash values, no blocks processed."""
        return cls()

    @property
    def state(self) -> State:
        return self._state

    def block_count(self) -> int:
        """Number of 128-byte blocks processed so far."""
        return self._blocks

    def hash(self, message: BytesLike) -> bytes:
        if self._finished:
            raise RuntimeError("Sha512Engine.hash() may only be called once per engine")

        padded = pad_message(message)
        for block in split_into_blocks(padded):
            self._state = _process_block(self._state, block)
            self._blocks += 1

        self._finished = True
        return digest_from_state(self._state)

    def hexdigest(self, uppercase: bool = False) -> str:
        return hexdigest_from_state(self._state, uppercase=uppercase)


def sha512_before(data: BytesLike) -> Tuple[State, List[List[int]]]:
    """High-level helper that prepares all inputs needed before compression.

    This performs:
    - Initialization of the SHA-512 state (H0..H7).
    - Padding of the message.
    - Splitting into 1024-bit blocks.
    - Building the 80-word message schedule for each block.

    With this, a custom compression pipeline can be driven directly:

        state, schedules = sha512_before(data)
        for ws in schedules:
            state = update_hash_state(state, *compress80(*state, ws))
        digest = sha512_after(state)
    """
    padded = pad_message(data)
    schedules = [build_message_schedule(block) for block in _chunks(padded, BLOCK_SIZE)]
    return H0, schedules


def sha512_after(final_state: Sequence[int]) -> bytes:
    """Finalize the digest from the state reached after the last block."""
    return digest_from_state(final_state)


def sha512(data: BytesLike) -> bytes:
    """Compute the 64-byte SHA-512 digest of `data`."""
    return Sha512Engine.initialize().hash(data)


def sha512_hex(data: BytesLike, uppercase: bool = False) -> str:
    """Convenience helper to return the SHA-512 hex digest of `data`."""
    engine = Sha512Engine.initialize()
    engine.hash(data)
    return engine.hexdigest(uppercase=uppercase)


#
# Incremental hashing
#

class Sha512:
    """Incremental SHA-512 with a hashlib-like interface.

    Keeps the unprocessed tail (< 128 bytes) and a running byte count;
    padding is applied to a copy in `digest()`, so more data may be fed
    afterwards.
    """

    name = "sha512"
    digest_size = DIGEST_SIZE
    block_size = BLOCK_SIZE

    def __init__(self, data: BytesLike = b"") -> None:
        self._state: State = H0
        self._buffer = b""
        self._counter = 0
        self._blocks = 0
        self.update(data)

    def update(self, data: BytesLike) -> None:
        data = _as_bytes(data)
        if not data:
            return
        _check_length(self._counter + len(data))

        self._buffer += data
        self._counter += len(data)

        full = len(self._buffer) - len(self._buffer) % BLOCK_SIZE
        for block in _chunks(self._buffer[:full], BLOCK_SIZE):
            self._state = _process_block(self._state, block)
            self._blocks += 1
        self._buffer = self._buffer[full:]

    def _final_state(self) -> State:
        state = self._state
        for block in _chunks(self._buffer + _padding_suffix(self._counter), BLOCK_SIZE):
            state = _process_block(state, block)
        return state

    def digest(self) -> bytes:
        return digest_from_state(self._final_state())

    def hexdigest(self) -> str:
        return hexdigest_from_state(self._final_state())

    def block_count(self) -> int:
        """Number of full blocks compressed so far, excluding finalization."""
        return self._blocks

    def copy(self) -> "Sha512":
        return copy.copy(self)


def new(data: BytesLike = b"") -> Sha512:
    return Sha512(data)
