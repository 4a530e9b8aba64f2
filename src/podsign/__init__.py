"""
podsign: Signed, Hash-Committed Provable Object Data

POD = EdDSA-Poseidon signature ∘ LeanIMT root ∘ per-entry Poseidon hashes

Everything is computed over the BN254 scalar field so a zero-knowledge
circuit can re-check the signature and any entry's membership cheaply:

- Poseidon permutation (circomlib parameters)
- Baby Jubjub twisted Edwards curve
- EdDSA with Poseidon challenges
- LeanIMT Merkle accumulator

Usage:
    from podsign import Attribute, AttributeType, encode, verify_pod

    record = encode(bytes(32), [
        Attribute("attack", AttributeType.INT, "7"),
        Attribute("itemSet", AttributeType.STRING, "celestial"),
    ])
    assert verify_pod(record).valid
    print(record.to_json())
"""

# Errors
from .errors import InvalidEncoding, NoInverseExists, EmptyInput, VerificationFailed

# Field
from .field import FIELD_PRIME, FieldElement, modular_inverse

# Poseidon
from .poseidon import (
    PoseidonParams,
    get_params,
    permute,
    poseidon,
    poseidon1,
    poseidon2,
    poseidon5,
)

# Curve
from .babyjub import (
    Point,
    IDENTITY,
    GENERATOR,
    BASE8,
    ORDER,
    SUBORDER,
    add,
    scalar_multiply,
    in_curve,
    pack_point,
    unpack_point,
)

# Signatures
from .eddsa import (
    Signature,
    PackedSignature,
    VerificationResult,
    EdDSAPoseidonSigner,
    EdDSAPoseidonVerifier,
    derive_public_key,
    derive_secret_scalar,
    sign,
    verify,
    verify_signature,
)

# Merkle accumulator
from .imt import LeanIMT, LeanIMTMerkleProof, build_root

# Hash oracles
from .oracles import KeyHash, StringHashAlgorithm, SignerConfig, DEFAULT_CONFIG

# POD
from .pod import (
    Attribute,
    AttributeType,
    PODContent,
    PODRecord,
    PODEncoder,
    PODVerifier,
    PODVerificationResult,
    attributes_from_entries,
    string_hash,
    entry_leaves,
    encode,
    verify_pod,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Errors
    "InvalidEncoding",
    "NoInverseExists",
    "EmptyInput",
    "VerificationFailed",
    # Field
    "FIELD_PRIME",
    "FieldElement",
    "modular_inverse",
    # Poseidon
    "PoseidonParams",
    "get_params",
    "permute",
    "poseidon",
    "poseidon1",
    "poseidon2",
    "poseidon5",
    # Curve
    "Point",
    "IDENTITY",
    "GENERATOR",
    "BASE8",
    "ORDER",
    "SUBORDER",
    "add",
    "scalar_multiply",
    "in_curve",
    "pack_point",
    "unpack_point",
    # Signatures
    "Signature",
    "PackedSignature",
    "VerificationResult",
    "EdDSAPoseidonSigner",
    "EdDSAPoseidonVerifier",
    "derive_public_key",
    "derive_secret_scalar",
    "sign",
    "verify",
    "verify_signature",
    # Merkle
    "LeanIMT",
    "LeanIMTMerkleProof",
    "build_root",
    # Oracles
    "KeyHash",
    "StringHashAlgorithm",
    "SignerConfig",
    "DEFAULT_CONFIG",
    # POD
    "Attribute",
    "AttributeType",
    "PODContent",
    "PODRecord",
    "PODEncoder",
    "PODVerifier",
    "PODVerificationResult",
    "attributes_from_entries",
    "string_hash",
    "entry_leaves",
    "encode",
    "verify_pod",
]
