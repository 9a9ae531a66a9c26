"""JSON Web Key (RFC 7517/7518) encoding of key records.

Typical usage example:

    text = encode(record, as_key_set=True)
    private_text = encode(record, include_private=True)
    [same] = decode(private_text)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import binascii
import hashlib
import json
import re
from typing import Any, Iterable

from jwkforge.errors import EncodingError
from jwkforge.errors import ValidationError
from jwkforge.record import assemble
from jwkforge.record import KEY_FAMILY
from jwkforge.record import KeyRecord
from jwkforge.rsa import bytes_to_integer
from jwkforge.rsa import integer_to_bytes
from jwkforge.rsa import RSAPrivKey
from jwkforge.rsa import RSAPubKey

PUBLIC_FIELDS = ("n", "e")
PRIVATE_FIELDS = ("d", "p", "q", "dp", "dq", "qi")
KEY_SET_NAME = "keys"

_B64URL = re.compile(r"[A-Za-z0-9_-]+")


def b64url_uint(value: int) -> str:
    """Base64url (unpadded) of the minimal big-endian representation of a non-negative integer."""
    return base64.urlsafe_b64encode(integer_to_bytes(value)).rstrip(b"=").decode("ascii")


def uint_b64url(value: str) -> int:
    """Inverse of `b64url_uint`.

    Raises:
        EncodingError: If `value` is not a base64url string.
    """
    if not isinstance(value, str):
        raise EncodingError(f"Expected a base64url string, got {type(value).__name__}")
    if not _B64URL.fullmatch(value):
        raise EncodingError(f"Invalid base64url value: {value!r}")
    try:
        return bytes_to_integer(base64.b64decode(value + "=" * (-len(value) % 4), altchars=b"-_", validate=True))
    except (binascii.Error, ValueError) as err:
        raise EncodingError(f"Invalid base64url value: {value!r}") from err


def to_dict(record: KeyRecord, include_private: bool = False) -> dict[str, str]:
    """Builds the JWK members of a record.

    Raises:
        EncodingError: If private members are requested but missing or inconsistent.
    """
    jwk = {
        "kty": KEY_FAMILY,
        "use": record.usage.value,
        "alg": record.algorithm,
        "kid": record.kid,
        "n": b64url_uint(record.public.n),
        "e": b64url_uint(record.public.e),
    }
    if not include_private:
        return jwk
    if record.private is None:
        raise EncodingError(f"Key {record.kid!r} carries no private components.")
    missing = [name for name, value in zip(PRIVATE_FIELDS, record.private) if value is None]
    if missing:
        raise EncodingError(f"Key {record.kid!r} is missing private components: {', '.join(missing)}")
    if record.private.p * record.private.q != record.public.n:
        raise EncodingError(f"Key {record.kid!r} has primes that do not match its modulus.")
    jwk.update(zip(PRIVATE_FIELDS, map(b64url_uint, record.private)))
    return jwk


def encode(record: KeyRecord, as_key_set: bool = False, include_private: bool = False) -> str:
    """Serializes a record as pretty-printed JWK or single-key JWK Set JSON.

    Args:
        record: The key to encode.
        as_key_set: Wrap the key as `{"keys": [...]}`.
        include_private: Add the private exponent and CRT parameters. When False none of them are emitted.

    Raises:
        EncodingError: See `to_dict`.
    """
    if as_key_set:
        return encode_key_set([record], include_private)
    return json.dumps(to_dict(record, include_private), indent=2)


def encode_key_set(records: Iterable[KeyRecord], include_private: bool = False) -> str:
    """Serializes several records as one JWK Set."""
    return json.dumps({KEY_SET_NAME: [to_dict(record, include_private) for record in records]}, indent=2)


def from_dict(jwk: dict[str, Any]) -> KeyRecord:
    """Rebuilds a record from JWK members.

    A JWK with "d" must carry all CRT parameters as well.

    Raises:
        EncodingError: On a non-RSA or malformed JWK.
    """
    if not isinstance(jwk, dict):
        raise EncodingError(f"Expected a JWK object, got {type(jwk).__name__}")
    if jwk.get("kty") != KEY_FAMILY:
        raise EncodingError(f"Unsupported key type: {jwk.get('kty')!r}")
    try:
        n, e = (uint_b64url(jwk[name]) for name in PUBLIC_FIELDS)
    except KeyError as err:
        raise EncodingError(f"JWK is missing public component {err.args[0]}") from err
    private = None
    if "d" in jwk:
        missing = [name for name in PRIVATE_FIELDS if name not in jwk]
        if missing:
            raise EncodingError(f"JWK is missing private components: {', '.join(missing)}")
        private = RSAPrivKey(n, e, *(uint_b64url(jwk[name]) for name in PRIVATE_FIELDS))
    try:
        return assemble(RSAPubKey(n, e), private, jwk.get("use", "sig"), jwk.get("alg"), jwk.get("kid", ""))
    except ValidationError as err:
        raise EncodingError(f"Invalid JWK: {err}") from err


def decode(text: str) -> list[KeyRecord]:
    """Parses JWK or JWK Set JSON into records.

    Returns:
        One record for a bare JWK, one per key for a JWK Set.

    Raises:
        EncodingError: If the text is not JSON or holds a malformed key.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as err:
        raise EncodingError(f"Invalid JWK JSON: {err}") from err
    if isinstance(data, dict) and KEY_SET_NAME in data:
        keys = data[KEY_SET_NAME]
        if not isinstance(keys, list):
            raise EncodingError(f"JWK Set member {KEY_SET_NAME!r} must be a list.")
        return [from_dict(jwk) for jwk in keys]
    return [from_dict(data)]


def thumbprint(record: KeyRecord) -> str:
    """RFC 7638 SHA-256 JWK thumbprint, base64url without padding."""
    members = {"e": b64url_uint(record.public.e), "kty": KEY_FAMILY, "n": b64url_uint(record.public.n)}
    canonical = json.dumps(members, separators=(",", ":"), sort_keys=True)
    digest = hashlib.sha256(canonical.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
