"""
POD Encoding: Signed, Hash-Committed Attribute Records

A POD commits to an ordered list of typed entries:

    leaves = [K(key_0), V(value_0), K(key_1), V(value_1), ...]
    root   = LeanIMT(leaves)
    proof  = EdDSA-Poseidon signature over root

with
    K(key)            = Poseidon(StringHash(key))
    V(string value)   = Poseidon(StringHash(value))
    V(int / crypto)   = Poseidon(value)
    StringHash(s)     = BE(H256(utf8(s))) >> 8

Record layout:

    {
      "id": "<uuid>",
      "claim": {"entries": {key: {"type": ..., "value": ...}, ...},
                "signerPublicKey": base64(32 bytes)},
      "proof": {"signature": base64(64 bytes)}
    }

Attribute order is part of the commitment: the same entries in another
order produce a different root.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union
import base64
import binascii
import json
import logging
import uuid

from .eddsa import EdDSAPoseidonSigner, PUBLIC_KEY_SIZE, SIGNATURE_SIZE, verify_signature
from .errors import InvalidEncoding, VerificationFailed
from .field import FIELD_PRIME, FieldElement
from .imt import LeanIMT, LeanIMTMerkleProof
from .oracles import DEFAULT_CONFIG, SignerConfig
from .poseidon import poseidon1

log = logging.getLogger(__name__)


INT_MIN = -(1 << 63)
INT_MAX = (1 << 63) - 1


class AttributeType(Enum):
    """Value types an entry may carry."""
    STRING = 'string'
    INT = 'int'
    CRYPTOGRAPHIC = 'cryptographic'


AttributeValue = Union[str, int]


@dataclass(frozen=True)
class Attribute:
    """
    One typed POD entry.

    int values are signed 64-bit; cryptographic values are field elements.
    Numeric values given as decimal strings are parsed.
    """
    key: str
    type: AttributeType
    value: AttributeValue

    def __post_init__(self):
        if not isinstance(self.key, str):
            raise TypeError(f"Attribute key must be str, got {type(self.key).__name__}")

        kind = AttributeType(self.type)
        object.__setattr__(self, 'type', kind)

        if kind is AttributeType.STRING:
            if not isinstance(self.value, str):
                raise TypeError(f"String attribute {self.key!r} needs a str value")
            return

        value = _parse_int(self.key, self.value)
        if kind is AttributeType.INT and not INT_MIN <= value <= INT_MAX:
            raise ValueError(f"Int attribute {self.key!r} out of 64-bit range: {value}")
        if kind is AttributeType.CRYPTOGRAPHIC and not 0 <= value < FIELD_PRIME:
            raise ValueError(f"Cryptographic attribute {self.key!r} must be in [0, p): {value}")
        object.__setattr__(self, 'value', value)

    def to_entry(self) -> Dict[str, Any]:
        return {"type": self.type.value, "value": self.value}


def _parse_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError(f"Attribute {key!r}: bool is not an integer value")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            raise ValueError(f"Attribute {key!r}: {value!r} is not a decimal integer") from None
    raise TypeError(f"Attribute {key!r}: expected int, got {type(value).__name__}")


def attributes_from_entries(entries: Mapping[str, Mapping[str, Any]]) -> List[Attribute]:
    """Typed attributes from an entries map {key: {"type": t, "value": v}}, in map order."""
    return [
        Attribute(key=key, type=AttributeType(entry["type"]), value=entry["value"])
        for key, entry in entries.items()
    ]


# =============================================================================
# Entry Hashing
# =============================================================================

def string_hash(value: str, config: SignerConfig = DEFAULT_CONFIG) -> int:
    """H256(utf8(value)) read big-endian, shifted right 8 bits to fit below p."""
    return int.from_bytes(config.h256(value.encode('utf-8')), 'big') >> 8


def key_leaf(key: str, config: SignerConfig = DEFAULT_CONFIG) -> FieldElement:
    """Leaf committing to an entry name."""
    return poseidon1(string_hash(key, config))


def value_leaf(attribute: Attribute, config: SignerConfig = DEFAULT_CONFIG) -> FieldElement:
    """Leaf committing to an entry value."""
    if attribute.type is AttributeType.STRING:
        return poseidon1(string_hash(attribute.value, config))
    return poseidon1(attribute.value)


def entry_leaves(
    attributes: Sequence[Attribute],
    config: SignerConfig = DEFAULT_CONFIG,
) -> List[FieldElement]:
    """[key leaf, value leaf] for each attribute, in order."""
    leaves = []
    for attribute in attributes:
        leaves.append(key_leaf(attribute.key, config))
        leaves.append(value_leaf(attribute, config))
    return leaves


# =============================================================================
# Content
# =============================================================================

class PODContent:
    """
    The committed part of a POD: ordered entries and their Merkle tree.
    """

    def __init__(self, attributes: Iterable[Attribute], config: SignerConfig = DEFAULT_CONFIG):
        self.attributes = list(attributes)
        if not self.attributes:
            raise ValueError("A POD needs at least one entry")

        seen = set()
        for attribute in self.attributes:
            if attribute.key in seen:
                raise ValueError(f"Duplicate entry name: {attribute.key!r}")
            seen.add(attribute.key)

        self.config = config
        self.tree = LeanIMT(entry_leaves(self.attributes, config))

    @property
    def root(self) -> FieldElement:
        return self.tree.root

    @property
    def entries(self) -> Dict[str, Dict[str, Any]]:
        return {a.key: a.to_entry() for a in self.attributes}

    def _index_of(self, key: str) -> int:
        for i, attribute in enumerate(self.attributes):
            if attribute.key == key:
                return i
        raise KeyError(key)

    def generate_entry_proof(self, key: str) -> LeanIMTMerkleProof:
        """Inclusion proof for the key leaf of entry `key`."""
        return self.tree.generate_proof(2 * self._index_of(key))

    def generate_value_proof(self, key: str) -> LeanIMTMerkleProof:
        """Inclusion proof for the value leaf of entry `key`."""
        return self.tree.generate_proof(2 * self._index_of(key) + 1)


# =============================================================================
# Record
# =============================================================================

@dataclass
class PODRecord:
    """Signed POD, ready for JSON."""
    id: str
    entries: Dict[str, Dict[str, Any]]
    signer_public_key: str
    """base64 of the 32-byte packed public key"""
    signature: str
    """base64 of the 64-byte packed signature"""

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict form; entry dicts are copies, not the record's own."""
        return {
            "id": self.id,
            "claim": {
                "entries": _copy_entries(self.entries),
                "signerPublicKey": self.signer_public_key,
            },
            "proof": {
                "signature": self.signature,
            },
        }

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PODRecord:
        return cls(
            id=data["id"],
            entries=_copy_entries(data["claim"]["entries"]),
            signer_public_key=data["claim"]["signerPublicKey"],
            signature=data["proof"]["signature"],
        )

    @classmethod
    def from_json(cls, text: str) -> PODRecord:
        return cls.from_dict(json.loads(text))

    def public_key_bytes(self) -> bytes:
        return _b64decode(self.signer_public_key, PUBLIC_KEY_SIZE, "public key")

    def signature_bytes(self) -> bytes:
        return _b64decode(self.signature, SIGNATURE_SIZE, "signature")


def _copy_entries(entries: Mapping[str, Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    return {key: dict(entry) for key, entry in entries.items()}


def _b64decode(text: str, size: int, what: str) -> bytes:
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, TypeError, ValueError) as e:
        raise InvalidEncoding(f"Invalid base64 {what}: {e}") from e
    if len(data) != size:
        raise InvalidEncoding(f"Decoded {what} must be {size} bytes, got {len(data)}")
    return data


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


# =============================================================================
# Encoder / Verifier
# =============================================================================

class PODEncoder:
    """
    Hash, commit and sign attribute sequences.
    """

    def __init__(self, config: SignerConfig = DEFAULT_CONFIG):
        self.config = config

    def encode(
        self,
        private_key_seed: bytes,
        attributes: Iterable[Attribute],
        pod_id: Optional[str] = None,
    ) -> PODRecord:
        """
        Sign `attributes` with `private_key_seed`.

        Args:
            private_key_seed: 32-byte EdDSA private key seed
            attributes: Ordered, typed entries
            pod_id: Identifier to embed; a random UUID4 when omitted

        Returns:
            PODRecord carrying entries, public key and signature
        """
        content = PODContent(attributes, self.config)
        signer = EdDSAPoseidonSigner(private_key_seed, self.config)
        packed = signer.sign(content.root)

        record = PODRecord(
            id=pod_id if pod_id is not None else str(uuid.uuid4()),
            entries=content.entries,
            signer_public_key=_b64encode(packed.public_key),
            signature=_b64encode(packed.signature),
        )
        log.debug("Encoded POD %s with %d entries", record.id, len(content.attributes))
        return record


@dataclass
class PODVerificationResult:
    """Result of POD verification."""
    valid: bool
    root: Optional[FieldElement] = None
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid

    def raise_for_failure(self) -> None:
        """Raise VerificationFailed unless the POD verified."""
        if not self.valid:
            raise VerificationFailed(self.error or "POD verification failed")


class PODVerifier:
    """
    Verify PODRecords by recomputing the root from their entries.

    Malformed records fail verification; they are never raised.
    """

    def __init__(self, config: SignerConfig = DEFAULT_CONFIG):
        self.config = config

    def verify(self, record: Union[PODRecord, Mapping[str, Any]]) -> PODVerificationResult:
        try:
            if not isinstance(record, PODRecord):
                record = PODRecord.from_dict(record)
            attributes = attributes_from_entries(record.entries)
            public_key = record.public_key_bytes()
            signature = record.signature_bytes()
            root = PODContent(attributes, self.config).root
        except (InvalidEncoding, AttributeError, KeyError, TypeError, ValueError) as e:
            log.debug("Rejecting malformed POD: %s", e)
            return PODVerificationResult(valid=False, error=f"Malformed POD: {e}")

        result = verify_signature(public_key, root, signature)
        return PODVerificationResult(valid=result.valid, root=root, error=result.error)


# =============================================================================
# Convenience Functions
# =============================================================================

def encode(
    private_key_seed: bytes,
    attributes: Iterable[Attribute],
    pod_id: Optional[str] = None,
    config: SignerConfig = DEFAULT_CONFIG,
) -> PODRecord:
    """Convenience function to encode and sign a POD."""
    return PODEncoder(config).encode(private_key_seed, attributes, pod_id)


def verify_pod(
    record: Union[PODRecord, Mapping[str, Any]],
    config: SignerConfig = DEFAULT_CONFIG,
) -> PODVerificationResult:
    """Convenience function to verify a POD record or its dict form."""
    return PODVerifier(config).verify(record)
