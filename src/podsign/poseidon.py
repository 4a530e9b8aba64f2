"""
Poseidon Permutation over the BN254 Scalar Field

The arithmetization-friendly hash used by circom circuits:

    state = [0, m_1, ..., m_{t-1}]
    for r in 0 .. R_F + R_P - 1:
        state += C[r]                          (round constants)
        state = S(state)                       (x^5, full or partial)
        state = M · state                      (MDS mixing)
    return state[0]

Rounds 0..3 and the last 4 rounds are full (S-box on every cell); the R_P
rounds in between only apply the S-box to cell 0. The exponent 5 is the
smallest α with gcd(α, p - 1) = 1.

Parameters are generated once per width t (see grain.py) and shared,
read-only, by every call.
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Sequence, Tuple, Union
import logging

from .field import FIELD_PRIME, FieldElement
from .grain import generate_parameters

log = logging.getLogger(__name__)


FULL_ROUNDS = 8
SBOX_ALPHA = 5

# Partial round counts used by circomlib, indexed by t - 2 (t = 2 .. 17)
PARTIAL_ROUNDS = (56, 57, 56, 60, 60, 63, 64, 63, 60, 66, 60, 65, 70, 60, 64, 68)

MAX_INPUTS = len(PARTIAL_ROUNDS)


@dataclass(frozen=True)
class PoseidonParams:
    """
    Public parameters for one Poseidon width.

    All tables are tuples so instances are immutable and safe to share.
    """

    t: int
    """State width: number of inputs + 1 capacity cell."""

    full_rounds: int
    partial_rounds: int

    round_constants: Tuple[int, ...]
    """(full_rounds + partial_rounds) * t constants, round-major."""

    mds: Tuple[Tuple[int, ...], ...]
    """t × t mixing matrix."""

    alpha: int = SBOX_ALPHA

    @property
    def total_rounds(self) -> int:
        return self.full_rounds + self.partial_rounds

    def is_full_round(self, r: int) -> bool:
        half = self.full_rounds // 2
        return r < half or r >= half + self.partial_rounds


@lru_cache(maxsize=None)
def get_params(t: int) -> PoseidonParams:
    """Parameters for state width t, generated on first use."""
    if not 2 <= t <= MAX_INPUTS + 1:
        raise ValueError(f"Unsupported Poseidon width t={t} (expected 2..{MAX_INPUTS + 1})")

    partial_rounds = PARTIAL_ROUNDS[t - 2]
    log.debug("Generating Poseidon parameters for t=%d (R_F=%d, R_P=%d)",
              t, FULL_ROUNDS, partial_rounds)
    constants, matrix = generate_parameters(t, FULL_ROUNDS, partial_rounds)

    return PoseidonParams(
        t=t,
        full_rounds=FULL_ROUNDS,
        partial_rounds=partial_rounds,
        round_constants=tuple(constants),
        mds=tuple(tuple(row) for row in matrix),
    )


def _sbox(x: int) -> int:
    x2 = (x * x) % FIELD_PRIME
    x4 = (x2 * x2) % FIELD_PRIME
    return (x4 * x) % FIELD_PRIME


def permute(state: Sequence[int], params: PoseidonParams) -> List[int]:
    """
    Apply the full Poseidon permutation to a copy of `state`.

    `state` must hold exactly params.t reduced integers.
    """
    t = params.t
    if len(state) != t:
        raise ValueError(f"State must have {t} elements, got {len(state)}")

    p = FIELD_PRIME
    C = params.round_constants
    M = params.mds
    state = [s % p for s in state]

    for r in range(params.total_rounds):
        # Add round constants
        offset = r * t
        state = [(state[i] + C[offset + i]) % p for i in range(t)]

        # S-box layer
        if params.is_full_round(r):
            state = [_sbox(s) for s in state]
        else:
            state[0] = _sbox(state[0])

        # Linear layer
        state = [sum(M[i][j] * state[j] for j in range(t)) % p for i in range(t)]

    return state


Input = Union[int, FieldElement]


def poseidon(inputs: Iterable[Input]) -> FieldElement:
    """
    Poseidon hash of 1..16 field elements, circomlib compatible.

    Inputs are reduced mod p; the width is len(inputs) + 1.
    """
    values = [int(x) % FIELD_PRIME for x in inputs]
    if not values:
        raise ValueError("Poseidon needs at least one input")
    if len(values) > MAX_INPUTS:
        raise ValueError(f"Poseidon supports at most {MAX_INPUTS} inputs, got {len(values)}")

    params = get_params(len(values) + 1)
    return FieldElement(permute([0] + values, params)[0])


def poseidon1(a: Input) -> FieldElement:
    """Single-value hash, used for int and cryptographic POD values."""
    return poseidon([a])


def poseidon2(left: Input, right: Input) -> FieldElement:
    """Two-to-one compression used by LeanIMT."""
    return poseidon([left, right])


def poseidon5(a: Input, b: Input, c: Input, d: Input, e: Input) -> FieldElement:
    """Five-input hash used for the EdDSA challenge."""
    return poseidon([a, b, c, d, e])
