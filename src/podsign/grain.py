"""
Grain LFSR Parameter Generation for Poseidon

The Poseidon round constants and MDS matrices used by circom / circomlib
come from the reference parameter script of the Poseidon authors. That
script seeds an 80-bit Grain LFSR with the instance description

    field(2) ‖ sbox(4) ‖ n(12) ‖ t(12) ‖ R_F(10) ‖ R_P(10) ‖ 1^30

discards 160 bits, and then draws field elements from a self-shrinking
output stream:

- round constants: n-bit big-endian draws, rejected while >= p
- MDS matrix: Cauchy matrix M[i][j] = 1 / (x_i + y_j) over 2t further
  draws (reduced mod p, all distinct)

Regenerating them here avoids shipping several thousand literal
constants while reproducing the published tables bit for bit.
"""

from typing import Iterator, List, Tuple

from .field import FIELD_PRIME, modular_inverse


# Instance description fields
FIELD_PRIME_TYPE = 1      # 0 = GF(2^n), 1 = GF(p)
SBOX_POWER = 0            # 0 = x^alpha, 1 = x^-1

STATE_BITS = 80
_STATE_MASK = (1 << STATE_BITS) - 1

# Feedback taps b[62], b[51], b[38], b[23], b[13], b[0] where b[0] is the
# oldest bit, stored here as the most significant bit of the register.
_TAP_SHIFTS = tuple(STATE_BITS - 1 - i for i in (62, 51, 38, 23, 13, 0))


class GrainLFSR:
    """Self-shrinking Grain LFSR bit source."""

    def __init__(self, field_size: int, t: int, full_rounds: int, partial_rounds: int):
        init_bits = (
            f"{FIELD_PRIME_TYPE:02b}"
            f"{SBOX_POWER:04b}"
            f"{field_size:012b}"
            f"{t:012b}"
            f"{full_rounds:010b}"
            f"{partial_rounds:010b}"
            + "1" * 30
        )
        self.state = int(init_bits, 2)
        self.field_size = field_size

        for _ in range(160):
            self._update()

    def _update(self) -> int:
        """Clock the register once and return the new bit."""
        s = self.state
        new_bit = 0
        for shift in _TAP_SHIFTS:
            new_bit ^= (s >> shift) & 1
        self.state = ((s << 1) & _STATE_MASK) | new_bit
        return new_bit

    def bits(self) -> Iterator[int]:
        """Self-shrinking output: emit the second bit of each pair led by a 1."""
        while True:
            first = self._update()
            while first == 0:
                self._update()
                first = self._update()
            yield self._update()

    def random_int(self, num_bits: int) -> int:
        """Draw num_bits output bits, most significant first."""
        stream = self.bits()
        value = 0
        for _ in range(num_bits):
            value = (value << 1) | next(stream)
        return value

    def field_element(self) -> int:
        """Rejection-sample an element of [0, p)."""
        value = self.random_int(self.field_size)
        while value >= FIELD_PRIME:
            value = self.random_int(self.field_size)
        return value


def generate_round_constants(lfsr: GrainLFSR, count: int) -> List[int]:
    """Draw `count` round constants in round-major order."""
    return [lfsr.field_element() for _ in range(count)]


def generate_cauchy_matrix(lfsr: GrainLFSR, t: int) -> List[List[int]]:
    """
    Draw a t × t Cauchy MDS matrix.

    Candidates with repeated draws or a vanishing x_i + y_j are discarded
    and redrawn, as in the reference script.
    """
    p = FIELD_PRIME
    while True:
        draws = [lfsr.random_int(lfsr.field_size) % p for _ in range(2 * t)]
        while len(set(draws)) != len(draws):
            draws = [lfsr.random_int(lfsr.field_size) % p for _ in range(2 * t)]
        xs, ys = draws[:t], draws[t:]

        if any((x + y) % p == 0 for x in xs for y in ys):
            continue

        return [[modular_inverse(x + y, p) for y in ys] for x in xs]


def generate_parameters(
    t: int,
    full_rounds: int,
    partial_rounds: int,
    field_size: int = FIELD_PRIME.bit_length(),
) -> Tuple[List[int], List[List[int]]]:
    """
    Generate (round_constants, mds_matrix) for one Poseidon instance.

    Round constants come first from the stream, the matrix after them.
    """
    lfsr = GrainLFSR(field_size, t, full_rounds, partial_rounds)
    constants = generate_round_constants(lfsr, (full_rounds + partial_rounds) * t)
    matrix = generate_cauchy_matrix(lfsr, t)
    return constants, matrix
