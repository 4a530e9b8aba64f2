"""
Error Taxonomy for podsign

Contract violations derive from the builtin the arithmetic would otherwise
raise, so callers catching ValueError or ZeroDivisionError keep working.

- InvalidEncoding: packed point, key or signature cannot be decoded
- NoInverseExists: modular inverse requested for a non-coprime value
- EmptyInput: accumulator asked for the root of zero leaves
- VerificationFailed: raised only on request, see VerificationResult
"""


class InvalidEncoding(ValueError):
    """Bytes do not decode to a valid curve point, key or signature."""


class NoInverseExists(ZeroDivisionError):
    """gcd(a, n) != 1, so a has no inverse modulo n."""

    def __init__(self, a: int, n: int):
        super().__init__(f"{a} has no inverse modulo {n}")
        self.a = a
        self.n = n


class EmptyInput(ValueError):
    """An accumulator was given no leaves."""


class VerificationFailed(Exception):
    """A signature or POD did not satisfy the verification equation."""
