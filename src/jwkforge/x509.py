"""Self-signed X.509 v3 certificates for generated keys.

The certificate is assembled with the RFC 5280 structures of pyasn1-modules and signed with RSASSA-PKCS1-v1_5 by the
key record's own private key.

Typical usage example:

    cert = self_sign(record, "example")
    text = pem.encode_certificate(cert)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import datetime
import logging
import secrets
import typing
import urllib.parse

from pyasn1 import error
from pyasn1.codec.der import encoder
from pyasn1.type import char
from pyasn1.type import univ
from pyasn1_modules import rfc5280

from jwkforge import jwk
from jwkforge.errors import CertificateBuildError
from jwkforge.errors import EncodingError
from jwkforge.record import KeyRecord
from jwkforge.record import PublicComponents
from jwkforge.rsa import RSAPubKey

logger = logging.getLogger(__name__)

VALIDITY = datetime.timedelta(days=300)

# JCA names mapped to (hash, PKCS#1 signature OID).
SIGNATURE_ALGORITHMS = {
    "SHA256withRSA": ("sha256", univ.ObjectIdentifier("1.2.840.113549.1.1.11")),
    "SHA384withRSA": ("sha384", univ.ObjectIdentifier("1.2.840.113549.1.1.12")),
    "SHA512withRSA": ("sha512", univ.ObjectIdentifier("1.2.840.113549.1.1.13")),
}

# RFC 5280 4.1.2.5: UTCTime through 2049, GeneralizedTime afterwards.
_UTC_TIME_LIMIT = datetime.datetime(2050, 1, 1, tzinfo=datetime.timezone.utc)


class CertificateRecord(typing.NamedTuple):
    """A built self-signed certificate.

    Attributes:
        subject: Common name of the subject.
        issuer: Common name of the issuer, equal to `subject`.
        serial_number: Certificate serial number.
        not_before: Start of validity (UTC).
        not_after: End of validity, `not_before` + 300 days.
        signature_algorithm: JCA name of the signature algorithm.
        public: The embedded public key components.
        der: The DER encoded certificate.
    """
    subject: str
    issuer: str
    serial_number: int
    not_before: datetime.datetime
    not_after: datetime.datetime
    signature_algorithm: str
    public: PublicComponents
    der: bytes

    def public_key(self) -> RSAPubKey:
        return RSAPubKey(self.public.n, self.public.e)


def serial_from_time(now: datetime.datetime) -> int:
    """Serial number made of the epoch milliseconds of `now` and 32 random low bits."""
    millis = int(now.timestamp() * 1000)
    return (millis << 32) | secrets.randbits(32)


def _name(common_name: str) -> rfc5280.Name:
    atv = rfc5280.AttributeTypeAndValue()
    atv["type"] = rfc5280.id_at_commonName
    atv["value"] = encoder.encode(char.UTF8String(common_name))
    rdn = rfc5280.RelativeDistinguishedName()
    rdn.setComponentByPosition(0, atv)
    rdn_sequence = rfc5280.RDNSequence()
    rdn_sequence.setComponentByPosition(0, rdn)
    name = rfc5280.Name()
    name.setComponentByName("rdnSequence", rdn_sequence)
    return name


def _time(moment: datetime.datetime) -> rfc5280.Time:
    res = rfc5280.Time()
    if moment < _UTC_TIME_LIMIT:
        res["utcTime"] = moment.strftime("%y%m%d%H%M%SZ")
    else:
        res["generalTime"] = moment.strftime("%Y%m%d%H%M%SZ")
    return res


def _algorithm(oid: univ.ObjectIdentifier) -> rfc5280.AlgorithmIdentifier:
    algo = rfc5280.AlgorithmIdentifier()
    algo["algorithm"] = oid
    algo["parameters"] = univ.Null("")
    return algo


def self_sign(record: KeyRecord,
              subject: str | None = None,
              signature_algorithm: str = "SHA256withRSA",
              now: datetime.datetime | None = None) -> CertificateRecord:
    """Builds a self-signed certificate for the record's key pair.

    Args:
        record: A record carrying private components.
        subject: Subject (and issuer) common name. Defaults to the kid, or the JWK thumbprint if the kid is empty.
            The name is URL-encoded into the CN attribute.
        signature_algorithm: JCA signature algorithm name, see `SIGNATURE_ALGORITHMS`.
        now: Start of validity. Defaults to the current time.

    Returns:
        The certificate record.

    Raises:
        CertificateBuildError: On an unsupported algorithm, a public-only record or a signing failure.
    """
    if signature_algorithm not in SIGNATURE_ALGORITHMS:
        raise CertificateBuildError(f"Unsupported signature algorithm for {record.key_family} keys: "
                                    f"{signature_algorithm}")
    sha, sig_oid = SIGNATURE_ALGORITHMS[signature_algorithm]
    try:
        private_key = record.private_key()
    except EncodingError as err:
        raise CertificateBuildError(f"Cannot self-sign: {err}") from err
    if subject is None:
        subject = record.kid or jwk.thumbprint(record)
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    now = now.astimezone(datetime.timezone.utc)
    not_before = now.replace(microsecond=0)
    not_after = not_before + VALIDITY
    serial = serial_from_time(now)
    dn = _name(urllib.parse.quote_plus(subject))

    try:
        validity = rfc5280.Validity()
        validity["notBefore"] = _time(not_before)
        validity["notAfter"] = _time(not_after)
        tbs = rfc5280.TBSCertificate()
        tbs["version"] = 2  # v3
        tbs["serialNumber"] = serial
        tbs["signature"] = _algorithm(sig_oid)
        tbs["issuer"] = dn
        tbs["validity"] = validity
        tbs["subject"] = dn
        tbs["subjectPublicKeyInfo"] = private_key.pub.to_spki()
        signature = private_key.sign(encoder.encode(tbs), sha)
        cert = rfc5280.Certificate()
        cert["tbsCertificate"] = tbs
        cert["signatureAlgorithm"] = _algorithm(sig_oid)
        cert["signature"] = univ.BitString.fromOctetString(signature)
        der = encoder.encode(cert)
    except (error.PyAsn1Error, RuntimeError, ValueError) as err:
        raise CertificateBuildError(f"Unable to create certificate: {err}") from err
    logger.debug("Self-signed certificate %d for %s, valid until %s", serial, subject, not_after.isoformat())
    return CertificateRecord(subject, subject, serial, not_before, not_after, signature_algorithm, record.public, der)
