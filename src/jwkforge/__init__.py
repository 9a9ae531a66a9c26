"""RSA key material for secret stores.

Generates RSA key pairs, assigns them a key ID and encodes them as JSON Web Keys, PEM blocks and self-signed X.509
certificates.

Typical usage example:

    record = make_key(2048, "sig", "RS256", "derive")
    print(jwk.encode(record, as_key_set=True))
    print(pem.encode_public_key(record.public_key()))
    print(pem.encode_certificate(self_sign(record)))
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from jwkforge import jwk
from jwkforge import pem
from jwkforge.errors import CertificateBuildError
from jwkforge.errors import ConfigurationError
from jwkforge.errors import EncodingError
from jwkforge.errors import JWKForgeError
from jwkforge.errors import KeyGenerationError
from jwkforge.errors import ValidationError
from jwkforge.keygen import KeyPairFactory
from jwkforge.kid import get_strategy
from jwkforge.kid import HashDerived
from jwkforge.kid import KeyIdStrategy
from jwkforge.kid import Literal
from jwkforge.maker import KeyOptions
from jwkforge.maker import make_key
from jwkforge.maker import secret_data
from jwkforge.record import assemble
from jwkforge.record import KeyRecord
from jwkforge.record import KeyUsage
from jwkforge.rsa import RSAPrivKey
from jwkforge.rsa import RSAPubKey
from jwkforge.x509 import CertificateRecord
from jwkforge.x509 import self_sign

__version__ = "0.1.0"
__all__ = [
    "jwk",
    "pem",
    "CertificateBuildError",
    "ConfigurationError",
    "EncodingError",
    "JWKForgeError",
    "KeyGenerationError",
    "ValidationError",
    "KeyPairFactory",
    "get_strategy",
    "HashDerived",
    "KeyIdStrategy",
    "Literal",
    "KeyOptions",
    "make_key",
    "secret_data",
    "assemble",
    "KeyRecord",
    "KeyUsage",
    "RSAPrivKey",
    "RSAPubKey",
    "CertificateRecord",
    "self_sign",
]
