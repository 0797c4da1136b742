"""Forward SHA-512 compression.

Given the current working state words `(a, b, c, d, e, f, g, h)`, the round
constant `k`, and the message schedule word `w`, one round computes:

    S1    = (e >>> 14) ^ (e >>> 18) ^ (e >>> 41)
    ch    = (e & f) ^ (~e & g)
    temp1 = h + ch + S1 + w + k

    S0    = (a >>> 28) ^ (a >>> 34) ^ (a >>> 39)
    maj   = (a & b) ^ (a & c) ^ (b & c)
    temp2 = S0 + maj

    a' = temp1 + temp2
    e' = d + temp1

    b' = a
    c' = b
    d' = c
    f' = e
    g' = f
    h' = g

All additions are performed modulo 2**64. After 80 rounds the working state
is added word-by-word onto the chaining value the block started from
(`update_hash_state`).
"""

from __future__ import annotations

from typing import List, Sequence, Tuple, Union

from constants import K_VALUES, MASK64, ROUNDS
from mixing import big_sigma0, big_sigma1, ch, maj


State = Tuple[int, int, int, int, int, int, int, int]


def compression(
    a: int,
    b: int,
    c: int,
    d: int,
    e: int,
    f: int,
    g: int,
    h: int,
    w: int,
    k: int,
) -> State:
    """Perform one SHA-512 compression round.

    Parameters
    ----------
    a, b, c, d, e, f, g, h : int
        64-bit words representing the current working state.
    w : int
        Message schedule word `w[t]`.
    k : int
        Round constant `k[t]`.

    Returns
    -------
    (a_new, b_new, c_new, d_new, e_new, f_new, g_new, h_new) : tuple[int, ...]
        Updated working state after one round, all reduced modulo 2**64.
    """
    temp1 = (h + ch(e, f, g) + big_sigma1(e) + w + k) & MASK64
    temp2 = (big_sigma0(a) + maj(a, b, c)) & MASK64

    return (
        (temp1 + temp2) & MASK64,
        a & MASK64,
        b & MASK64,
        c & MASK64,
        (d + temp1) & MASK64,
        e & MASK64,
        f & MASK64,
        g & MASK64,
    )


def compress80(
    a: int,
    b: int,
    c: int,
    d: int,
    e: int,
    f: int,
    g: int,
    h: int,
    ws: Sequence[int],
    track: bool = False,
) -> Union[State, Tuple[State, List[State]]]:
    """Run the full 80-round SHA-512 compression loop for one block.

    Parameters
    ----------
    a, b, c, d, e, f, g, h : int
        Initial working state words (typically the current hash value).
    ws : Sequence[int]
        The 80-word message schedule `w[0..79]` for this block.
    track : bool
        When true, also return the working state after every round.

    Returns
    -------
    (a, b, c, d, e, f, g, h) : tuple[int, ...]
        Final working state words after 80 rounds. With ``track=True`` the
        result is ``(state, rounds)`` where ``rounds`` holds 80 states.
    """
    if len(ws) != ROUNDS:
        raise ValueError(f"compress80 expects {ROUNDS} message schedule words, got {len(ws)}")

    state: State = (a, b, c, d, e, f, g, h)
    rounds: List[State] = []
    for t in range(ROUNDS):
        state = compression(*state, ws[t], K_VALUES[t])
        if track:
            rounds.append(state)

    if track:
        return state, rounds
    return state


def update_hash_state(H_i: Sequence[int], a: int, b: int, c: int, d: int, e: int, f: int, g: int, h: int) -> State:
    """Feed the working registers forward into the chaining value.

        H_{i+1}[j] = (H_i[j] + working[j]) mod 2^64
    """
    if len(H_i) != 8:
        raise ValueError(f"H_i must hold 8 words, got {len(H_i)}")

    h0, h1, h2, h3, h4, h5, h6, h7 = H_i
    return (
        (h0 + a) & MASK64,
        (h1 + b) & MASK64,
        (h2 + c) & MASK64,
        (h3 + d) & MASK64,
        (h4 + e) & MASK64,
        (h5 + f) & MASK64,
        (h6 + g) & MASK64,
        (h7 + h) & MASK64,
    )
