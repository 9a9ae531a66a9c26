"""Generation pipeline: validate the request, generate the key pair, derive the kid and assemble the record.

Typical usage example:

    record = make_key(2048, "sig", "RS256", "derive")
    data = secret_data(record)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import typing

from jwkforge import pem
from jwkforge.keygen import KeyPairFactory
from jwkforge.kid import get_strategy
from jwkforge.kid import KeyIdStrategy
from jwkforge.record import assemble
from jwkforge.record import check_algorithm
from jwkforge.record import KeyRecord
from jwkforge.record import KeyUsage
from jwkforge.record import parse_usage

logger = logging.getLogger(__name__)

DEFAULT_SECRET_FIELD = "PRIVATE_KEY"


class KeyOptions(typing.NamedTuple):
    """Parameters of one generation request, with the defaults used when none are given."""
    size: int = 2048
    usage: str = KeyUsage.SIGNING.value
    algorithm: str = "RS256"
    kid: str = "derive"
    kid_value: str | None = None


DEFAULTS = KeyOptions()


def make_key(size: int = DEFAULTS.size,
             usage: KeyUsage | str = DEFAULTS.usage,
             algorithm: str = DEFAULTS.algorithm,
             kid: KeyIdStrategy | str = DEFAULTS.kid,
             kid_value: str | None = None,
             factory: KeyPairFactory | None = None) -> KeyRecord:
    """Generates a new key and assembles its record.

    Every parameter is validated before the key pair is generated.

    Args:
        size: Modulus size in bits, a multiple of 8.
        usage: Signing or encryption, see `record.parse_usage`.
        algorithm: RSA family JWA algorithm.
        kid: A kid strategy or its name, see `kid.get_strategy`.
        kid_value: The kid for the "literal" strategy.
        factory: Key pair factory. Defaults to the built-in generator.

    Returns:
        A record carrying both public and private components.

    Raises:
        ValidationError: On a bad size, usage or algorithm.
        ConfigurationError: On an unknown kid strategy.
        KeyGenerationError: If the key pair cannot be generated.
    """
    use = parse_usage(usage)
    alg = check_algorithm(algorithm)
    strategy = kid if isinstance(kid, KeyIdStrategy) else get_strategy(kid, kid_value)
    factory = factory if factory is not None else KeyPairFactory()
    pub, priv = factory.generate(size)
    record = assemble(pub, priv, use, alg, strategy.generate(use, pub.to_der()))
    logger.info("Generated %d-bit %s key %s (%s, %s)", record.size_bits, record.key_family, record.kid,
                use.value, alg)
    return record


def make_key_from_options(options: KeyOptions, factory: KeyPairFactory | None = None) -> KeyRecord:
    return make_key(options.size, options.usage, options.algorithm, options.kid, options.kid_value, factory)


def secret_data(record: KeyRecord, field: str = DEFAULT_SECRET_FIELD) -> dict[str, str]:
    """The key/value mapping a secret-store client writes for this key.

    Returns:
        `{field: <PKCS#8 PEM of the private key>}`.

    Raises:
        EncodingError: If the record carries no complete private key.
    """
    return {field: pem.encode_private_key(record.private_key())}
