"""
BN254 Scalar Field Arithmetic

Field: F_p where
    p = 21888242871839275222246405745257275088548364400416034343698204186575808495617

This is the scalar field of the BN254 pairing curve and the base field of
Baby Jubjub. Poseidon and every curve coordinate live here.

The multiplicative group has order p-1 = 2^28 * q (q odd), so square roots
need Tonelli-Shanks.

Python ints are arbitrary precision, so products of two reduced elements
(up to ~508 bits) never wrap.
"""

from __future__ import annotations
from typing import Optional, Union

from .errors import NoInverseExists


# BN254 scalar field modulus
FIELD_PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617

# Two-adicity: largest k such that 2^k divides p-1 (28 for BN254)
TWO_ADICITY = ((FIELD_PRIME - 1) & -(FIELD_PRIME - 1)).bit_length() - 1

# Elements above this bound are "negative" for point packing
HALF_PRIME = (FIELD_PRIME - 1) // 2


def modular_inverse(a: int, n: int) -> int:
    """
    Inverse of a modulo n by the extended Euclidean algorithm.

    Raises NoInverseExists when gcd(a, n) != 1 (which includes a ≡ 0).
    """
    t, new_t = 0, 1
    r, new_r = n, a % n

    while new_r != 0:
        quotient = r // new_r
        t, new_t = new_t, t - quotient * new_t
        r, new_r = new_r, r - quotient * new_r

    if r != 1:
        raise NoInverseExists(a, n)
    return t % n


def pow_mod(base: int, exponent: int, modulus: int, bits: Optional[int] = None) -> int:
    """
    Square-and-multiply exponentiation.

    Walks every bit of the exponent (or `bits` bits when given) from the
    most significant end. The multiplication is computed on every bit and
    kept only when the bit is set.
    """
    if exponent < 0:
        raise ValueError("Negative exponent; use modular_inverse first")
    width = max(bits or 0, exponent.bit_length())
    result = 1
    base %= modulus
    for i in range(width - 1, -1, -1):
        result = (result * result) % modulus
        product = (result * base) % modulus
        result = product if (exponent >> i) & 1 else result
    return result


IntLike = Union[int, "FieldElement"]


def _as_int(value: IntLike) -> int:
    if isinstance(value, FieldElement):
        return value.value
    return value


class FieldElement:
    """
    Element of the BN254 scalar field.

    Every instance holds a value already reduced into [0, p). Instances are
    immutable; arithmetic returns new elements.
    """

    __slots__ = ('value',)

    def __init__(self, value: int):
        """Create field element from integer (any integer is reduced)."""
        object.__setattr__(self, 'value', int(value) % FIELD_PRIME)

    def __setattr__(self, name, value):
        raise AttributeError("FieldElement is immutable")

    # =========================================================================
    # Arithmetic Operations
    # =========================================================================

    def __add__(self, other: IntLike) -> FieldElement:
        """Addition in F_p."""
        return FieldElement(self.value + _as_int(other))

    __radd__ = __add__

    def __sub__(self, other: IntLike) -> FieldElement:
        """Subtraction in F_p."""
        return FieldElement(self.value - _as_int(other))

    def __rsub__(self, other: IntLike) -> FieldElement:
        return FieldElement(_as_int(other) - self.value)

    def __mul__(self, other: IntLike) -> FieldElement:
        """Multiplication in F_p."""
        return FieldElement(self.value * _as_int(other))

    __rmul__ = __mul__

    def __neg__(self) -> FieldElement:
        """Negation in F_p."""
        return FieldElement(FIELD_PRIME - self.value if self.value else 0)

    def __truediv__(self, other: IntLike) -> FieldElement:
        """Division in F_p (multiplication by inverse)."""
        if not isinstance(other, FieldElement):
            other = FieldElement(other)
        return self * other.inverse()

    def __pow__(self, exp: int) -> FieldElement:
        """Exponentiation using square-and-multiply."""
        if exp < 0:
            return self.inverse() ** (-exp)
        return FieldElement(pow_mod(self.value, exp, FIELD_PRIME))

    def inverse(self) -> FieldElement:
        """Multiplicative inverse (extended Euclid)."""
        return FieldElement(modular_inverse(self.value, FIELD_PRIME))

    def sqrt(self) -> Optional[FieldElement]:
        """Square root if it exists, None otherwise."""
        return _tonelli_shanks(self)

    # =========================================================================
    # Comparison Operations
    # =========================================================================

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldElement):
            return self.value == other.value
        if isinstance(other, int):
            return self.value == (other % FIELD_PRIME)
        return False

    def __ne__(self, other: object) -> bool:
        return not self.__eq__(other)

    def __hash__(self) -> int:
        return hash(self.value)

    def __int__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"FieldElement({self.value})"

    def __str__(self) -> str:
        return str(self.value)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_bytes(self) -> bytes:
        """Serialize to 32 bytes (little-endian)."""
        return self.value.to_bytes(32, 'little')

    @classmethod
    def from_bytes(cls, data: bytes) -> FieldElement:
        """Deserialize from up to 32 bytes (little-endian), reducing mod p."""
        return cls(int.from_bytes(data[:32], 'little'))

    def to_int(self) -> int:
        """Convert to integer."""
        return self.value

    # =========================================================================
    # Predicates
    # =========================================================================

    def is_zero(self) -> bool:
        return self.value == 0

    def is_one(self) -> bool:
        return self.value == 1

    def is_negative(self) -> bool:
        """True for the upper half of the field, (p-1)/2 < value < p."""
        return self.value > HALF_PRIME

    # =========================================================================
    # Class Methods
    # =========================================================================

    @classmethod
    def zero(cls) -> FieldElement:
        """Additive identity."""
        return cls(0)

    @classmethod
    def one(cls) -> FieldElement:
        """Multiplicative identity."""
        return cls(1)


# =============================================================================
# Helper Functions
# =============================================================================

def _tonelli_shanks(a: FieldElement) -> Optional[FieldElement]:
    """
    Tonelli-Shanks algorithm for computing square roots.

    Returns sqrt(a) if it exists, None otherwise. The inputs here are public
    curve coordinates, so the builtin pow is used.
    """
    if a.is_zero():
        return FieldElement.zero()

    p = FIELD_PRIME

    # Check if a is a quadratic residue
    if pow(a.value, (p - 1) // 2, p) != 1:
        return None

    # Factor p-1 = 2^s * q where q is odd
    s = TWO_ADICITY
    q = (p - 1) >> s

    # Find a quadratic non-residue
    z = 2
    while pow(z, (p - 1) // 2, p) != p - 1:
        z += 1

    m = s
    c = pow(z, q, p)
    t = pow(a.value, q, p)
    r = pow(a.value, (q + 1) // 2, p)

    while True:
        if t == 1:
            return FieldElement(r)

        # Find least i such that t^(2^i) = 1
        i = 1
        temp = (t * t) % p
        while temp != 1:
            temp = (temp * temp) % p
            i += 1

        # Update
        b = pow(c, 1 << (m - i - 1), p)
        m = i
        c = (b * b) % p
        t = (t * c) % p
        r = (r * b) % p
