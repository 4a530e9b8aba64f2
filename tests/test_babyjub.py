"""
Tests for Baby Jubjub Point Arithmetic

Group law, scalar multiplication and point compression.
"""

import pytest

from podsign.babyjub import (
    A,
    BASE8,
    COFACTOR,
    D,
    GENERATOR,
    IDENTITY,
    ORDER,
    SUBORDER,
    Point,
    add,
    in_curve,
    in_subgroup,
    mul_base8,
    negate,
    pack_point,
    scalar_multiply,
    unpack_point,
)
from podsign.errors import InvalidEncoding
from podsign.field import FIELD_PRIME, FieldElement


class TestConstants:
    """Curve parameters."""

    def test_parameters(self):
        assert A == 168700
        assert D == 168696
        assert SUBORDER == ORDER // 8
        assert ORDER % 8 == 0

    def test_identity_on_curve(self):
        assert in_curve(IDENTITY)

    def test_base_points_on_curve(self):
        assert in_curve(GENERATOR)
        assert in_curve(BASE8)

    def test_base8_is_eight_generator(self):
        assert scalar_multiply(GENERATOR, COFACTOR) == BASE8

    def test_base8_has_prime_order(self):
        assert scalar_multiply(BASE8, SUBORDER) == IDENTITY
        assert in_subgroup(BASE8)

    def test_generator_not_in_subgroup(self):
        assert not in_subgroup(GENERATOR)


class TestAddition:
    """Twisted Edwards addition law."""

    def test_identity_plus_identity(self):
        assert add(IDENTITY, IDENTITY) == IDENTITY

    def test_identity_is_neutral(self):
        assert add(BASE8, IDENTITY) == BASE8
        assert add(IDENTITY, BASE8) == BASE8

    def test_doubling_vector(self):
        p1 = Point.from_ints(
            17777552123799933955779906779655732241715742912184938656739573121738514868268,
            2626589144620713026669568689430873010625803728049924121243784502389097019475,
        )
        out = add(p1, p1)
        assert out.to_ints() == (
            6890855772600357754907169075114257697580319025794532037257385534741338397365,
            4338620300185947561074059802482547481416142213883829469920100239455078257889,
        )

    def test_commutative(self):
        p2 = mul_base8(2)
        p3 = mul_base8(3)
        assert add(p2, p3) == add(p3, p2)

    def test_associative(self):
        p1, p2, p3 = BASE8, add(BASE8, BASE8), GENERATOR
        assert add(add(p1, p2), p3) == add(p1, add(p2, p3))

    def test_inverse(self):
        assert add(BASE8, negate(BASE8)) == IDENTITY
        assert BASE8 + (-BASE8) == IDENTITY

    def test_result_on_curve(self):
        assert in_curve(add(BASE8, GENERATOR))

    def test_from_ints_rejects_off_curve(self):
        with pytest.raises(ValueError):
            Point.from_ints(1, 1)


class TestScalarMultiplication:
    """Double-and-add."""

    def test_zero_is_identity(self):
        assert scalar_multiply(BASE8, 0) == IDENTITY

    def test_one_is_point(self):
        assert scalar_multiply(BASE8, 1) == BASE8

    def test_matches_repeated_addition(self):
        acc = IDENTITY
        for n in range(1, 9):
            acc = add(acc, BASE8)
            assert scalar_multiply(BASE8, n) == acc

    def test_step(self):
        for n in [5, 17, 255]:
            assert scalar_multiply(BASE8, n) == add(scalar_multiply(BASE8, n - 1), BASE8)

    def test_distributes(self):
        assert mul_base8(7 + 11) == add(mul_base8(7), mul_base8(11))

    def test_operator_forms(self):
        assert BASE8 * 3 == mul_base8(3)
        assert 3 * BASE8 == mul_base8(3)

    def test_subgroup_wraps(self):
        assert mul_base8(SUBORDER + 5) == mul_base8(5)

    def test_wide_scalar(self):
        # Scalars wider than 256 bits are processed in full
        wide = (1 << 260) + 3
        assert mul_base8(wide) == mul_base8(wide % SUBORDER)

    def test_negative_scalar_rejected(self):
        with pytest.raises(ValueError):
            scalar_multiply(BASE8, -1)


class TestCompression:
    """Point packing and unpacking."""

    def test_roundtrip(self):
        for n in [1, 2, 3, 1000, SUBORDER - 1]:
            point = mul_base8(n)
            packed = pack_point(point)
            assert len(packed) == 32
            assert unpack_point(packed) == point

    def test_identity_roundtrip(self):
        assert unpack_point(pack_point(IDENTITY)) == IDENTITY

    def test_sign_bit(self):
        point = BASE8 if BASE8.x.is_negative() else negate(BASE8)
        assert pack_point(point)[31] & 0x80
        assert not pack_point(negate(point))[31] & 0x80

    def test_negation_roundtrip(self):
        point = negate(mul_base8(42))
        assert unpack_point(pack_point(point)) == point

    def test_wrong_length(self):
        with pytest.raises(InvalidEncoding):
            unpack_point(bytes(31))
        with pytest.raises(InvalidEncoding):
            unpack_point(bytes(33))

    def test_unreduced_y(self):
        data = bytearray((FIELD_PRIME + 1).to_bytes(32, 'little'))
        with pytest.raises(InvalidEncoding):
            unpack_point(bytes(data))

    def test_no_curve_point(self):
        # Find a y with no matching x
        for y in range(2, 200):
            y_fe = FieldElement(y)
            x2 = (1 - y_fe * y_fe) / (A - D * y_fe * y_fe)
            if x2.sqrt() is None:
                with pytest.raises(InvalidEncoding):
                    unpack_point(y.to_bytes(32, 'little'))
                return
        pytest.fail("No non-residue candidate found")

    def test_invalid_encoding_is_value_error(self):
        with pytest.raises(ValueError):
            unpack_point(b'\xff' * 32)

    def test_sign_bit_on_zero_x_rejected(self):
        # (0, 1) and (0, -1) have exactly one encoding each
        order_two = Point(FieldElement(0), FieldElement(-1))
        assert in_curve(order_two)
        for point in (IDENTITY, order_two):
            packed = bytearray(pack_point(point))
            assert not packed[31] & 0x80
            packed[31] |= 0x80
            with pytest.raises(InvalidEncoding):
                unpack_point(bytes(packed))

    def test_order_two_point_roundtrip(self):
        order_two = Point(FieldElement(0), FieldElement(-1))
        packed = pack_point(order_two)
        assert unpack_point(packed) == order_two
        assert pack_point(unpack_point(packed)) == packed

    def test_point_pack_method(self):
        assert BASE8.pack() == pack_point(BASE8)
