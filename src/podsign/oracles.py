"""
Hash Oracles and Signer Configuration

The signer needs two conventional hash functions besides Poseidon:

- H512: 64-byte digest for private key expansion and nonce derivation
- H256: 32-byte digest for string attribute hashing

Both are injected. They can be picked by name from the hashlib-backed
enums below, or given as any callable bytes -> bytes. Output lengths are
checked on every call, so a misbehaving oracle fails loudly instead of
silently weakening keys.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Union
import hashlib


HashFunction = Callable[[bytes], bytes]

KEY_HASH_SIZE = 64
STRING_HASH_SIZE = 32


class KeyHash(Enum):
    """64-byte hash algorithms for key expansion and nonces."""
    BLAKE2B = 'blake2b'
    SHA512 = 'sha512'
    SHA3_512 = 'sha3_512'


class StringHashAlgorithm(Enum):
    """32-byte hash algorithms for string values."""
    SHA256 = 'sha256'
    SHA3_256 = 'sha3_256'
    BLAKE2S = 'blake2s'


def key_hash_function(algorithm: Union[KeyHash, str]) -> HashFunction:
    """Resolve a KeyHash (or its name) to a hashlib-backed callable."""
    if hasattr(algorithm, 'value'):
        algorithm = algorithm.value

    if algorithm == 'blake2b':
        return lambda data: hashlib.blake2b(data, digest_size=64).digest()
    elif algorithm == 'sha512':
        return lambda data: hashlib.sha512(data).digest()
    elif algorithm == 'sha3_512':
        return lambda data: hashlib.sha3_512(data).digest()
    else:
        raise ValueError(f"Unknown key hash: {algorithm}")


def string_hash_function(algorithm: Union[StringHashAlgorithm, str]) -> HashFunction:
    """Resolve a StringHashAlgorithm (or its name) to a hashlib-backed callable."""
    if hasattr(algorithm, 'value'):
        algorithm = algorithm.value

    if algorithm == 'sha256':
        return lambda data: hashlib.sha256(data).digest()
    elif algorithm == 'sha3_256':
        return lambda data: hashlib.sha3_256(data).digest()
    elif algorithm == 'blake2s':
        return lambda data: hashlib.blake2s(data, digest_size=32).digest()
    else:
        raise ValueError(f"Unknown string hash: {algorithm}")


def _resolve(oracle, resolver) -> HashFunction:
    if callable(oracle):
        return oracle
    return resolver(oracle)


@dataclass(frozen=True)
class SignerConfig:
    """
    Hash oracles used by the signer and the POD encoder.

    Defaults are BLAKE2b-512 for key material and SHA-256 for strings.
    Fields accept an enum member, its string name, or a callable.
    """

    key_hash: Union[KeyHash, str, HashFunction] = KeyHash.BLAKE2B
    """H512 used for key expansion and deterministic nonces."""

    string_hash: Union[StringHashAlgorithm, str, HashFunction] = StringHashAlgorithm.SHA256
    """H256 used to map string values into the field."""

    _h512: HashFunction = field(init=False, repr=False, compare=False)
    _h256: HashFunction = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, '_h512', _resolve(self.key_hash, key_hash_function))
        object.__setattr__(self, '_h256', _resolve(self.string_hash, string_hash_function))

    def h512(self, data: bytes) -> bytes:
        """64-byte oracle; rejects implementations returning another length."""
        digest = self._h512(bytes(data))
        if len(digest) != KEY_HASH_SIZE:
            raise ValueError(f"Key hash must return {KEY_HASH_SIZE} bytes, got {len(digest)}")
        return digest

    def h256(self, data: bytes) -> bytes:
        """32-byte oracle; rejects implementations returning another length."""
        digest = self._h256(bytes(data))
        if len(digest) != STRING_HASH_SIZE:
            raise ValueError(f"String hash must return {STRING_HASH_SIZE} bytes, got {len(digest)}")
        return digest


DEFAULT_CONFIG = SignerConfig()
