"""
Baby Jubjub Twisted Edwards Curve

Curve over the BN254 scalar field:

    a·x² + y² = 1 + d·x²·y²      a = 168700, d = 168696

Group order is 8 · l with l prime. Base8 generates the order-l subgroup
and is the base point for keys and signatures.

The addition law is complete (d is a non-square, a is a square), so adding
two curve points never divides by zero. Points use affine coordinates;
each addition costs two field inversions.

Packing (32 bytes): little-endian y, with the top bit of byte 31 set when
x is "negative", i.e. x > (p-1)/2.
"""

from __future__ import annotations
from dataclasses import dataclass

from .errors import InvalidEncoding
from .field import FIELD_PRIME, FieldElement


A = FieldElement(168700)
D = FieldElement(168696)

# Full group order and the prime subgroup order
ORDER = 21888242871839275222246405745257275088614511777268538073601725287587578984328
SUBORDER = ORDER >> 3
COFACTOR = 8

# Scalars are processed over at least this many bits
SCALAR_BITS = 256

PACKED_POINT_SIZE = 32


@dataclass(frozen=True)
class Point:
    """Affine curve point (x, y). Immutable."""

    x: FieldElement
    y: FieldElement

    @classmethod
    def from_ints(cls, x: int, y: int) -> Point:
        """Build a point from integer coordinates, checking the curve equation."""
        point = cls(FieldElement(x), FieldElement(y))
        if not in_curve(point):
            raise ValueError(f"({x}, {y}) is not on Baby Jubjub")
        return point

    def __add__(self, other: Point) -> Point:
        return add(self, other)

    def __neg__(self) -> Point:
        return negate(self)

    def __mul__(self, scalar: int) -> Point:
        return scalar_multiply(self, scalar)

    __rmul__ = __mul__

    def to_ints(self):
        return (self.x.value, self.y.value)

    def pack(self) -> bytes:
        return pack_point(self)

    def __repr__(self) -> str:
        return f"Point({self.x.value}, {self.y.value})"


IDENTITY = Point(FieldElement(0), FieldElement(1))

# Generator of the full group
GENERATOR = Point(
    FieldElement(995203441582195749578291179787384436505546430278305826713579947235728471134),
    FieldElement(5472060717959818805561601436314318772137091100104008585924551046643952123905),
)

# Base8 = 8 · GENERATOR, generator of the prime-order subgroup
BASE8 = Point(
    FieldElement(5299619240641551281634865583518297030282874472190772894086521144482721001553),
    FieldElement(16950150798460657717958625567821834550301663161624707787222815936182638968203),
)


# =============================================================================
# Group Law
# =============================================================================

def in_curve(point: Point) -> bool:
    """Check a·x² + y² = 1 + d·x²·y²."""
    x2 = point.x * point.x
    y2 = point.y * point.y
    return A * x2 + y2 == 1 + D * x2 * y2


def add(p1: Point, p2: Point) -> Point:
    """
    Twisted Edwards addition:

        x3 = (x1·y2 + y1·x2) / (1 + d·x1·x2·y1·y2)
        y3 = (y1·y2 - a·x1·x2) / (1 - d·x1·x2·y1·y2)
    """
    x1, y1 = p1.x, p1.y
    x2, y2 = p2.x, p2.y

    x1x2 = x1 * x2
    y1y2 = y1 * y2
    dxy = D * x1x2 * y1y2

    x3 = (x1 * y2 + y1 * x2) / (1 + dxy)
    y3 = (y1y2 - A * x1x2) / (1 - dxy)
    return Point(x3, y3)


def negate(point: Point) -> Point:
    """-(x, y) = (-x, y)."""
    return Point(-point.x, point.y)


def scalar_multiply(point: Point, scalar: int) -> Point:
    """
    Double-and-add, least significant bit first.

    Every bit position up to max(SCALAR_BITS, bit length) computes both the
    addition and the doubling; the sum is kept only when the bit is set.
    There is no early exit on leading zero bits.
    """
    if scalar < 0:
        raise ValueError("Scalar must be non-negative")

    result = IDENTITY
    base = point
    for i in range(max(SCALAR_BITS, scalar.bit_length())):
        added = add(result, base)
        result = added if (scalar >> i) & 1 else result
        base = add(base, base)
    return result


def mul_base8(scalar: int) -> Point:
    """scalar · Base8."""
    return scalar_multiply(BASE8, scalar)


def in_subgroup(point: Point) -> bool:
    """True when point has order dividing l."""
    return in_curve(point) and scalar_multiply(point, SUBORDER) == IDENTITY


# =============================================================================
# Compression
# =============================================================================

def pack_point(point: Point) -> bytes:
    """Compress to 32 bytes: LE(y) with the sign of x in the top bit."""
    buff = bytearray(point.y.to_bytes())
    if point.x.is_negative():
        buff[31] |= 0x80
    return bytes(buff)


def unpack_point(data: bytes) -> Point:
    """
    Decompress a 32-byte point.

    Raises InvalidEncoding when the length is wrong, y is not reduced, no
    x satisfies the curve equation for y, or the sign bit is set on x = 0.
    """
    if len(data) != PACKED_POINT_SIZE:
        raise InvalidEncoding(f"Packed point must be {PACKED_POINT_SIZE} bytes, got {len(data)}")

    buff = bytearray(data)
    sign = bool(buff[31] & 0x80)
    buff[31] &= 0x7F

    y_int = int.from_bytes(buff, 'little')
    if y_int >= FIELD_PRIME:
        raise InvalidEncoding("Packed y coordinate is not reduced")
    y = FieldElement(y_int)

    # x² = (1 - y²) / (a - d·y²)
    y2 = y * y
    denominator = A - D * y2
    if denominator.is_zero():
        raise InvalidEncoding("No curve point for packed y")
    x = ((1 - y2) / denominator).sqrt()
    if x is None:
        raise InvalidEncoding("No curve point for packed y")

    if x.is_negative():
        x = -x
    if sign:
        # -0 = 0, so a sign bit on x = 0 would be a second encoding
        if x.is_zero():
            raise InvalidEncoding("Sign bit set for x = 0")
        x = -x
    return Point(x, y)
