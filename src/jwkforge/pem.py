"""PEM armouring of keys and certificates.

Produces the "PRIVATE KEY" (PKCS#8), "PUBLIC KEY" (SubjectPublicKeyInfo) and "CERTIFICATE" blocks handed to secret
stores. Private keys are never encrypted, securing them is up to the caller.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import binascii
import typing

from jwkforge.errors import EncodingError
from jwkforge.rsa import RSAPrivKey
from jwkforge.rsa import RSAPubKey

if typing.TYPE_CHECKING:
    from jwkforge.x509 import CertificateRecord

PEM_TYPES = {
    "PKCS8": "PRIVATE KEY",
    "SPKI": "PUBLIC KEY",
    "X509": "CERTIFICATE",
}

LINE_WIDTH = 64


def write_pem(subtype: str, data: bytes) -> str:
    """Armours DER data as a PEM block.

    Args:
        subtype: The subtype of PEM encoding to write, a key of `PEM_TYPES`.
        data: The DER payload.

    Returns:
        The PEM text, newline terminated.
    """
    label = PEM_TYPES[subtype]
    payload = base64.b64encode(data).decode("ascii")
    res = f"-----BEGIN {label}-----\n"
    res += "".join(payload[i:i + LINE_WIDTH] + "\n" for i in range(0, len(payload), LINE_WIDTH))
    res += f"-----END {label}-----\n"
    return res


def read_pem(text: str, subtype: str) -> bytes:
    """Reads the first PEM block of the given subtype.

    Args:
        text: The PEM text. Lines outside the block are ignored.
        subtype: The subtype of PEM encoding to accept.

    Returns:
        The decoded DER payload.

    Raises:
        EncodingError: If the block is missing, unterminated or not base64.
    """
    label = PEM_TYPES[subtype]
    header, footer = f"-----BEGIN {label}-----", f"-----END {label}-----"
    lines = [line.strip() for line in text.splitlines()]
    try:
        start = lines.index(header)
    except ValueError as err:
        raise EncodingError(f"PEM text does not contain header: {header}") from err
    try:
        end = lines.index(footer, start + 1)
    except ValueError as err:
        raise EncodingError(f"PEM text does not contain footer: {footer}") from err
    try:
        return base64.b64decode("".join(lines[start + 1:end]), validate=True)
    except binascii.Error as err:
        raise EncodingError(f"PEM body is not valid base64: {err}") from err


def encode_private_key(private_key: RSAPrivKey) -> str:
    """PKCS#8 "PRIVATE KEY" block. Raises EncodingError for keys without CRT components."""
    return write_pem("PKCS8", private_key.to_der())


def encode_public_key(public_key: RSAPubKey) -> str:
    """SubjectPublicKeyInfo "PUBLIC KEY" block."""
    return write_pem("SPKI", public_key.to_der())


def encode_certificate(certificate: "CertificateRecord") -> str:
    """X.509 "CERTIFICATE" block."""
    return write_pem("X509", certificate.der)
