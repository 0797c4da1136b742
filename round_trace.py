"""Record the SHA-512 working state at every round and export it as YAML.

Report layout (as written by `save_trace_yaml`):

    message_length_bytes: 3
    message_hex: "616263"
    digest_hex: "ddaf35a1..."
    blocks:
      - block_index: 0
        input_state: ["6a09e667f3bcc908", ...]
        rounds:
          - [...]   # working state after round 0
          ...
        output_state: [...]
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, List, Tuple, Union

import yaml

from compress import State, compress80, update_hash_state
from constants import H0
from sha512 import BytesLike, _as_bytes, sha512_after, sha512_before


def _format_state(state: State) -> List[str]:
    return [f"{word:016x}" for word in state]


def _tracked_blocks(data: BytesLike) -> Iterator[Tuple[State, List[State], State]]:
    """Yield `(input_state, rounds, output_state)` for each block of `data`."""
    state, schedules = sha512_before(data)
    for ws in schedules:
        work_out, rounds = compress80(*state, ws, track=True)
        next_state = update_hash_state(state, *work_out)
        yield state, rounds, next_state
        state = next_state


def sha512_with_tracking(data: BytesLike) -> Tuple[bytes, List[List[State]]]:
    """Compute SHA-512 while tracking the working state after each round.

    Returns:
        (digest, states_per_block)
        where states_per_block[block_idx] is a list of 80 working states
    """
    state: State = H0
    all_rounds: List[List[State]] = []

    for _, rounds, state in _tracked_blocks(data):
        all_rounds.append(rounds)

    return sha512_after(state), all_rounds


def build_trace_report(data: BytesLike) -> Dict:
    """Build a plain-dict report of every block and round for `data`."""
    message = _as_bytes(data)
    state: State = H0

    blocks = []
    for block_idx, (input_state, rounds, state) in enumerate(_tracked_blocks(message)):
        blocks.append(
            {
                "block_index": block_idx,
                "input_state": _format_state(input_state),
                "rounds": [_format_state(r) for r in rounds],
                "output_state": _format_state(state),
            }
        )

    return {
        "message_length_bytes": len(message),
        "message_hex": message.hex(),
        "digest_hex": sha512_after(state).hex(),
        "blocks": blocks,
    }


def save_trace_yaml(data: BytesLike, path: Union[str, Path]) -> Path:
    """Write the trace report for `data` to `path` and return the path."""
    report = build_trace_report(data)
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    with p.open("w", encoding="utf-8") as f:
        yaml.dump(report, f, default_flow_style=False, sort_keys=False)

    print(f"saved trace of {len(report['blocks'])} block(s) to {p}")
    return p


def load_trace_yaml(path: Union[str, Path]) -> Dict:
    with Path(path).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)
