"""The immutable key record shared by every encoder, and its assembler."""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import enum
import typing

from jwkforge.errors import EncodingError
from jwkforge.errors import ValidationError
from jwkforge.rsa import RSAPrivKey
from jwkforge.rsa import RSAPubKey

KEY_FAMILY = "RSA"

RSA_ALGORITHMS = frozenset({
    "RS256", "RS384", "RS512",
    "PS256", "PS384", "PS512",
    "RSA1_5", "RSA-OAEP", "RSA-OAEP-256", "RSA-OAEP-384", "RSA-OAEP-512",
})

# JWA algorithms of the other key families, only used to give a better error.
FOREIGN_ALGORITHMS = {
    **dict.fromkeys(("ES256", "ES256K", "ES384", "ES512", "ECDH-ES", "ECDH-ES+A128KW", "ECDH-ES+A192KW",
                     "ECDH-ES+A256KW"), "EC"),
    **dict.fromkeys(("HS256", "HS384", "HS512", "A128KW", "A192KW", "A256KW", "A128GCMKW", "A192GCMKW", "A256GCMKW",
                     "dir"), "oct"),
    **dict.fromkeys(("EdDSA", "Ed25519", "Ed448"), "OKP"),
}


class KeyUsage(str, enum.Enum):
    """Intended use of a key, valued as the JWK "use" parameter."""
    SIGNING = "sig"
    ENCRYPTION = "enc"


_USAGE_ALIASES = {
    "sig": KeyUsage.SIGNING,
    "signing": KeyUsage.SIGNING,
    "enc": KeyUsage.ENCRYPTION,
    "encryption": KeyUsage.ENCRYPTION,
}


class PublicComponents(typing.NamedTuple):
    n: int
    e: int


class PrivateComponents(typing.NamedTuple):
    d: int
    p: int | None = None
    q: int | None = None
    dp: int | None = None
    dq: int | None = None
    qi: int | None = None


class KeyRecord(typing.NamedTuple):
    """One generated key with its metadata.

    Built once by `assemble` and only read afterwards. A record without `private` is a public-only record.

    Attributes:
        usage: Signing or encryption.
        algorithm: JWA algorithm token, always of the RSA family.
        kid: Key identifier.
        public: Modulus and public exponent.
        private: Private exponent and CRT parameters, or None.
    """
    usage: KeyUsage
    algorithm: str
    kid: str
    public: PublicComponents
    private: PrivateComponents | None = None

    @property
    def key_family(self) -> str:
        return KEY_FAMILY

    @property
    def size_bits(self) -> int:
        return self.public.n.bit_length()

    @property
    def has_private(self) -> bool:
        return self.private is not None

    def public_key(self) -> RSAPubKey:
        return RSAPubKey(self.public.n, self.public.e)

    def private_key(self) -> RSAPrivKey:
        """Rebuilds the private key object.

        Raises:
            EncodingError: If this is a public-only record.
        """
        if self.private is None:
            raise EncodingError(f"Key {self.kid!r} carries no private components.")
        return RSAPrivKey(self.public.n, self.public.e, *self.private)

    def to_public(self) -> "KeyRecord":
        """The same record with the private components dropped."""
        return self._replace(private=None)


def parse_usage(usage: KeyUsage | str) -> KeyUsage:
    """Normalises a usage given as enum member, JWK "use" value or long name.

    Raises:
        ValidationError: For anything else.
    """
    if isinstance(usage, KeyUsage):
        return usage
    try:
        return _USAGE_ALIASES[usage]
    except (KeyError, TypeError) as err:
        raise ValidationError(f"Unknown key usage: {usage!r}. Expected signing or encryption.") from err


def check_algorithm(algorithm: str) -> str:
    """Ensures the algorithm identifier belongs to the RSA family.

    Raises:
        ValidationError: For algorithms of other key families and unknown identifiers.
    """
    if not isinstance(algorithm, str):
        raise ValidationError(f"Unknown {KEY_FAMILY} algorithm: {algorithm!r}")
    if algorithm in RSA_ALGORITHMS:
        return algorithm
    if algorithm in FOREIGN_ALGORITHMS:
        raise ValidationError(f"Algorithm {algorithm} belongs to key type {FOREIGN_ALGORITHMS[algorithm]}, "
                              f"not {KEY_FAMILY}.")
    raise ValidationError(f"Unknown {KEY_FAMILY} algorithm: {algorithm!r}")


def assemble(public_key: RSAPubKey,
             private_key: RSAPrivKey | None,
             usage: KeyUsage | str,
             algorithm: str,
             kid: str) -> KeyRecord:
    """Combines a raw key pair and its metadata into a KeyRecord.

    Args:
        public_key: The public key.
        private_key: The matching private key, or None for a public-only record.
        usage: Key usage, see `parse_usage`.
        algorithm: RSA family JWA algorithm.
        kid: Key identifier.

    Returns:
        The assembled record.

    Raises:
        ValidationError: On a bad usage, algorithm or kid, or a private key that does not match the public key.
    """
    use = parse_usage(usage)
    alg = check_algorithm(algorithm)
    if not isinstance(kid, str):
        raise ValidationError(f"Key ID must be a string, got {type(kid).__name__}")
    private = None
    if private_key is not None:
        if private_key.pub != public_key:
            raise ValidationError("Private key does not belong to the public key.")
        private = PrivateComponents(private_key.expo, private_key.p, private_key.q, private_key.exp1,
                                    private_key.exp2, private_key.coeff)
    return KeyRecord(use, alg, kid, PublicComponents(public_key.mod, public_key.expo), private)
