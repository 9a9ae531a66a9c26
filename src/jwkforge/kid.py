"""Key ID ("kid") strategies.

Two strategies exist: `HashDerived` computes the kid from the public key, `Literal` hands back a fixed string.
`get_strategy` selects one by name.

Typical usage example:

    strategy = get_strategy("derive")
    kid = strategy.generate(KeyUsage.SIGNING, pub.to_der())
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import abc
import base64
import hashlib
import logging

from jwkforge.errors import ConfigurationError
from jwkforge.record import KeyUsage

logger = logging.getLogger(__name__)


class KeyIdStrategy(abc.ABC):
    """Computes the kid attached to a key at assembly time."""

    name: str

    @abc.abstractmethod
    def generate(self, usage: KeyUsage, public_key_der: bytes) -> str:
        """Returns the kid for a key.

        Args:
            usage: The usage of the key.
            public_key_der: The DER encoded SubjectPublicKeyInfo of the key.
        """


class HashDerived(KeyIdStrategy):
    """Base64url (unpadded) SHA-256 digest of the SubjectPublicKeyInfo DER.

    The usage is not part of the digest, so one key pair always maps to one kid.
    """

    name = "derive"

    def generate(self, usage: KeyUsage, public_key_der: bytes) -> str:
        digest = hashlib.sha256(public_key_der).digest()
        kid = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
        logger.debug("Derived kid %s", kid)
        return kid


class Literal(KeyIdStrategy):
    """Always returns the string it was built with."""

    name = "literal"

    def __init__(self, value: str) -> None:
        self.value = value

    def generate(self, usage: KeyUsage, public_key_der: bytes) -> str:
        return self.value


_STRATEGIES = {
    "derive": HashDerived,
    "sha256": HashDerived,
    "literal": Literal,
}

STRATEGY_NAMES = tuple(_STRATEGIES)


def get_strategy(name: str, value: str | None = None) -> KeyIdStrategy:
    """Looks up a kid strategy by name.

    Args:
        name: "derive" (or "sha256") for `HashDerived`, "literal" for `Literal`.
        value: The kid to use with the "literal" strategy. Ignored otherwise.

    Returns:
        The strategy instance.

    Raises:
        ConfigurationError: If the name is unknown or "literal" comes without a value.
    """
    try:
        cls = _STRATEGIES[name]
    except KeyError as err:
        raise ConfigurationError(f"Unknown key ID strategy: {name!r}. "
                                 f"Expected one of: {', '.join(STRATEGY_NAMES)}") from err
    if cls is Literal:
        if value is None:
            raise ConfigurationError("The literal key ID strategy needs a value.")
        return Literal(value)
    return cls()
