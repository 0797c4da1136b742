"""SHA-512 bit-mixing functions over 64-bit words.

    σ0(x) = (x >>> 1)  ^ (x >>> 8)  ^ (x >> 7)      message schedule
    σ1(x) = (x >>> 19) ^ (x >>> 61) ^ (x >> 6)      message schedule
    Σ0(x) = (x >>> 28) ^ (x >>> 34) ^ (x >>> 39)    compression
    Σ1(x) = (x >>> 14) ^ (x >>> 18) ^ (x >>> 41)    compression
    ch    = (x & y) ^ (~x & z)
    maj   = (x & y) ^ (x & z) ^ (y & z)

Every term is combined with XOR. Replacing any of them with addition gives a
different (non-standard) function.
"""

from __future__ import annotations

from constants import MASK64


def _rotr(x: int, n: int) -> int:
    """Right-rotate a 64-bit word `x` by `n` bits."""
    x &= MASK64
    return ((x >> n) | (x << (64 - n))) & MASK64


def _shr(x: int, n: int) -> int:
    """Right-shift a 64-bit word `x` by `n` bits."""
    x &= MASK64
    return x >> n


def small_sigma0(x: int) -> int:
    """SHA-512 function σ0 used in the message schedule."""
    return (_rotr(x, 1) ^ _rotr(x, 8) ^ _shr(x, 7)) & MASK64


def small_sigma1(x: int) -> int:
    """SHA-512 function σ1 used in the message schedule."""
    return (_rotr(x, 19) ^ _rotr(x, 61) ^ _shr(x, 6)) & MASK64


def big_sigma0(x: int) -> int:
    """SHA-512 function Σ0 applied to register `a`."""
    return _rotr(x, 28) ^ _rotr(x, 34) ^ _rotr(x, 39)


def big_sigma1(x: int) -> int:
    """SHA-512 function Σ1 applied to register `e`."""
    return _rotr(x, 14) ^ _rotr(x, 18) ^ _rotr(x, 41)


def ch(x: int, y: int, z: int) -> int:
    """Choose bits of `y` where `x` is set, bits of `z` elsewhere."""
    return ((x & y) ^ ((~x) & z)) & MASK64


def maj(x: int, y: int, z: int) -> int:
    """Bitwise majority of three words."""
    return ((x & y) ^ (x & z) ^ (y & z)) & MASK64
