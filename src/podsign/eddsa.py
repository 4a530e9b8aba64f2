"""
EdDSA over Baby Jubjub with Poseidon Challenges

Deterministic signatures compatible with circomlib's EdDSA-Poseidon:

    sBuff = H512(seed)                 clamped: [0] &= 0xF8, [31] &= 0x7F, [31] |= 0x40
    s     = LE(sBuff[0:32])
    A     = (s >> 3) · Base8
    r     = LE(H512(sBuff[32:64] ‖ LE32(msg))) mod l
    R8    = r · Base8
    hm    = Poseidon(R8.x, R8.y, A.x, A.y, msg)
    S     = (r + hm · s) mod l

Verification checks S · Base8 == R8 + (8 · hm) · A. Because the low three
bits of s are clear, 8 · (s >> 3) = s and the two sides agree.

Packed forms:
    public key  32 bytes   pack(A)
    signature   64 bytes   pack(R8) ‖ LE32(S)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple, Union
import logging

from .babyjub import (
    COFACTOR,
    PACKED_POINT_SIZE,
    SUBORDER,
    Point,
    add,
    in_curve,
    mul_base8,
    pack_point,
    scalar_multiply,
    unpack_point,
)
from .errors import InvalidEncoding, VerificationFailed
from .field import FIELD_PRIME, FieldElement
from .oracles import DEFAULT_CONFIG, SignerConfig
from .poseidon import poseidon5

log = logging.getLogger(__name__)


SEED_SIZE = 32
PUBLIC_KEY_SIZE = PACKED_POINT_SIZE
SIGNATURE_SIZE = 2 * PACKED_POINT_SIZE

BYTES_LIKE = (bytes, bytearray, memoryview)

Message = Union[int, FieldElement]


# =============================================================================
# Signature Types
# =============================================================================

@dataclass(frozen=True)
class Signature:
    """Unpacked signature: commitment point R8 and scalar S."""
    R8: Point
    S: int

    def pack(self) -> bytes:
        """pack(R8) ‖ LE32(S)."""
        return pack_point(self.R8) + self.S.to_bytes(32, 'little')

    @classmethod
    def unpack(cls, data: bytes) -> Signature:
        """Decode 64 bytes; raises InvalidEncoding on malformed input."""
        if len(data) != SIGNATURE_SIZE:
            raise InvalidEncoding(f"Signature must be {SIGNATURE_SIZE} bytes, got {len(data)}")
        R8 = unpack_point(data[:32])
        S = int.from_bytes(data[32:], 'little')
        if S >= SUBORDER:
            raise InvalidEncoding("Signature scalar S is not reduced")
        return cls(R8=R8, S=S)


@dataclass(frozen=True)
class PackedSignature:
    """What a signer hands out: packed public key and packed signature."""
    public_key: bytes
    signature: bytes


@dataclass
class VerificationResult:
    """Result of signature verification."""
    valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid

    def raise_for_failure(self) -> None:
        """Raise VerificationFailed unless the signature verified."""
        if not self.valid:
            raise VerificationFailed(self.error or "Signature verification failed")


# =============================================================================
# Key Derivation
# =============================================================================

def _message_int(message: Message) -> int:
    return int(message) % FIELD_PRIME


def expand_private_key(seed: bytes, config: SignerConfig = DEFAULT_CONFIG) -> bytes:
    """
    H512(seed) with EdDSA clamping applied to the low half.

    The result holds secret material: the low 32 bytes are the signing
    scalar, the high 32 bytes seed the nonces.
    """
    if len(seed) != SEED_SIZE:
        raise ValueError(f"Private key seed must be {SEED_SIZE} bytes, got {len(seed)}")

    buff = bytearray(config.h512(seed))
    buff[0] &= 0xF8
    buff[31] &= 0x7F
    buff[31] |= 0x40
    return bytes(buff)


def derive_secret_scalar(seed: bytes, config: SignerConfig = DEFAULT_CONFIG) -> int:
    """Clamped scalar s (before the cofactor shift)."""
    return int.from_bytes(expand_private_key(seed, config)[:32], 'little')


def derive_public_key(seed: bytes, config: SignerConfig = DEFAULT_CONFIG) -> Point:
    """A = (s >> 3) · Base8."""
    return mul_base8(derive_secret_scalar(seed, config) >> 3)


def challenge(R8: Point, A: Point, message: Message) -> int:
    """hm = Poseidon(R8.x, R8.y, A.x, A.y, msg)."""
    return poseidon5(R8.x, R8.y, A.x, A.y, _message_int(message)).value


# =============================================================================
# Signer / Verifier
# =============================================================================

class EdDSAPoseidonSigner:
    """
    Sign field elements with a 32-byte private key seed.

    Signing is deterministic: the same seed and message always produce the
    same bytes.
    """

    def __init__(self, private_key_seed: bytes, config: SignerConfig = DEFAULT_CONFIG):
        expanded = expand_private_key(private_key_seed, config)
        self.config = config
        self._s = int.from_bytes(expanded[:32], 'little')
        self._nonce_key = expanded[32:]
        self.public_point = mul_base8(self._s >> 3)

    @property
    def public_key(self) -> bytes:
        """Packed 32-byte public key."""
        return pack_point(self.public_point)

    def _nonce(self, message: int) -> int:
        digest = self.config.h512(self._nonce_key + message.to_bytes(32, 'little'))
        return int.from_bytes(digest, 'little') % SUBORDER

    def sign_message(self, message: Message) -> Signature:
        """Produce the unpacked (R8, S) signature of a field element."""
        msg = _message_int(message)
        r = self._nonce(msg)
        R8 = mul_base8(r)
        hm = challenge(R8, self.public_point, msg)
        S = (r + hm * self._s) % SUBORDER
        return Signature(R8=R8, S=S)

    def sign(self, message: Message) -> PackedSignature:
        """Sign and pack: (32-byte public key, 64-byte signature)."""
        signature = self.sign_message(message)
        return PackedSignature(public_key=self.public_key, signature=signature.pack())


class EdDSAPoseidonVerifier:
    """
    Verify EdDSA-Poseidon signatures.

    Malformed keys and signatures are reported as failed results, never
    raised.
    """

    def verify(
        self,
        public_key: Union[bytes, Point],
        message: Message,
        signature: Union[bytes, Signature],
    ) -> VerificationResult:
        try:
            A, sig = self._decode(public_key, signature)
        except InvalidEncoding as e:
            log.debug("Rejecting signature: %s", e)
            return VerificationResult(valid=False, error=f"Invalid encoding: {e}")

        if sig.S >= SUBORDER:
            return VerificationResult(valid=False, error="Signature scalar S is not reduced")

        hm = challenge(sig.R8, A, message)
        left = mul_base8(sig.S)
        right = add(sig.R8, scalar_multiply(A, COFACTOR * hm))

        if left != right:
            log.debug("Signature equation does not hold")
            return VerificationResult(valid=False, error="Signature equation does not hold")
        return VerificationResult(valid=True)

    @staticmethod
    def _decode(
        public_key: Union[bytes, Point],
        signature: Union[bytes, Signature],
    ) -> Tuple[Point, Signature]:
        if isinstance(public_key, Point):
            A = public_key
            if not in_curve(A):
                raise InvalidEncoding("Public key is not on the curve")
        elif not isinstance(public_key, BYTES_LIKE):
            raise InvalidEncoding(f"Public key must be bytes, got {type(public_key).__name__}")
        else:
            if len(public_key) != PUBLIC_KEY_SIZE:
                raise InvalidEncoding(
                    f"Public key must be {PUBLIC_KEY_SIZE} bytes, got {len(public_key)}"
                )
            A = unpack_point(bytes(public_key))

        if isinstance(signature, Signature):
            if not in_curve(signature.R8):
                raise InvalidEncoding("Signature point R8 is not on the curve")
            sig = signature
        elif not isinstance(signature, BYTES_LIKE):
            raise InvalidEncoding(f"Signature must be bytes, got {type(signature).__name__}")
        else:
            sig = Signature.unpack(bytes(signature))
        return A, sig


# =============================================================================
# Convenience Functions
# =============================================================================

def sign(
    private_key_seed: bytes,
    message: Message,
    config: SignerConfig = DEFAULT_CONFIG,
) -> PackedSignature:
    """Convenience function to sign a field element."""
    return EdDSAPoseidonSigner(private_key_seed, config).sign(message)


def verify_signature(
    public_key: Union[bytes, Point],
    message: Message,
    signature: Union[bytes, Signature],
) -> VerificationResult:
    """Verify and report why verification failed, if it did."""
    return EdDSAPoseidonVerifier().verify(public_key, message, signature)


def verify(
    public_key: Union[bytes, Point],
    message: Message,
    signature: Union[bytes, Signature],
) -> bool:
    """Convenience function to verify a signature."""
    return verify_signature(public_key, message, signature).valid
