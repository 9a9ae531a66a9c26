"""RSA key objects, PKCS#1 v1.5 signatures and DER marshalling.

Holds the raw RSA key pair produced by key generation. Public keys marshal to the X.509 SubjectPublicKeyInfo
structure and private keys to PKCS#8 PrivateKeyInfo. Signing is used to self-sign certificates.

Typical usage example:

    pub, priv = generate_key_pair(2048)
    signature = priv.sign(b"payload", "sha256")
    pub.verify(b"payload", signature)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import hashlib

from pyasn1 import error
from pyasn1.codec.der import decoder
from pyasn1.codec.der import encoder
from pyasn1.codec.native import encoder as localize
from pyasn1.type import univ
from pyasn1_modules import rfc5208
from pyasn1_modules import rfc5280
from pyasn1_modules import rfc8017

from jwkforge.errors import EncodingError

HASH_TLL = {
    "sha256": (hashlib.sha256, rfc8017.id_sha256),
    "sha384": (hashlib.sha384, rfc8017.id_sha384),
    "sha512": (hashlib.sha512, rfc8017.id_sha512),
}

HASH_OID = {
    rfc8017.id_sha256: "sha256",
    rfc8017.id_sha384: "sha384",
    rfc8017.id_sha512: "sha512",
}


class RSAKey:
    """The overall RSA key class implementation.

    Attributes:
        mod: The modulus of the keypair.
        expo: The exponent of the key, whether private or public.
    """

    def __init__(self, mod: int, expo: int) -> None:
        self.mod = mod
        self.expo = expo
        self.bsize = (self.mod.bit_length() + 7) // 8

    def c_rsa(self, message: int) -> int:
        """Performs core RSA operation. (Sign/Verify).

        Args:
            message: The int-marshalled message.

        Returns:
            The transformed message representative.

        Raises:
            ValueError: If the message is out of range for the current key.
        """
        if not 0 <= message < self.mod:
            raise ValueError("Message representative must be in range [0, mod-1]")
        return pow(message, self.expo, self.mod)


class RSAPubKey(RSAKey):
    """Public half of an RSA key pair."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RSAPubKey):
            return NotImplemented
        return (self.mod, self.expo) == (other.mod, other.expo)

    def __hash__(self) -> int:
        return hash((self.mod, self.expo))

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Verify an RSASSA-PKCS1-v1_5 signature of the message.

        The digest algorithm is read back from the DigestInfo inside the signature.

        Args:
            message: The message to verify the signature against.
            signature: The raw signature bytes.

        Returns:
            True if the signature matches the message, False otherwise.
        """
        if len(signature) != self.bsize:
            return False
        try:
            decr_int = self.c_rsa(bytes_to_integer(signature))
        except ValueError:
            return False
        rec_bytes = integer_to_bytes(decr_int, self.bsize)
        if rec_bytes[0:2] != b"\x00\x01":
            return False
        rec_bytes = rec_bytes[2:]
        try:
            li = rec_bytes.index(b"\x00")
        except ValueError:
            return False
        ps = rec_bytes[0:li]
        if not ps or not all(b == 0xff for b in ps) or len(ps) < 8:
            return False
        en_payload = rec_bytes[li + 1:]
        try:
            payload, rest = decoder.decode(en_payload, asn1Spec=rfc8017.DigestInfo())
            hasher = HASH_TLL[HASH_OID[payload["digestAlgorithm"]["algorithm"]]][0]
            return not rest and hasher(message).digest() == payload["digest"].asOctets()
        except (error.PyAsn1Error, KeyError):
            return False

    def to_spki(self) -> rfc5280.SubjectPublicKeyInfo:
        """The X.509 SubjectPublicKeyInfo structure of this key."""
        keydata = rfc8017.RSAPublicKey()
        keydata["modulus"] = self.mod
        keydata["publicExponent"] = self.expo
        algo = rfc5280.AlgorithmIdentifier()
        algo["algorithm"] = rfc8017.rsaEncryption
        algo["parameters"] = univ.Null("")
        spki = rfc5280.SubjectPublicKeyInfo()
        spki["algorithm"] = algo
        spki["subjectPublicKey"] = univ.BitString.fromOctetString(encoder.encode(keydata))
        return spki

    def to_der(self) -> bytes:
        """DER encoding of the X.509 SubjectPublicKeyInfo of this key."""
        return encoder.encode(self.to_spki())

    @classmethod
    def from_der(cls, payload: bytes) -> "RSAPubKey":
        """Import an RSA public key from SubjectPublicKeyInfo DER.

        Raises:
            EncodingError: If the payload is not an RSA SubjectPublicKeyInfo.
        """
        try:
            spki, rest = decoder.decode(payload, asn1Spec=rfc5280.SubjectPublicKeyInfo())
            if rest:
                raise EncodingError("Trailing data after SubjectPublicKeyInfo.")
            if spki["algorithm"]["algorithm"] != rfc8017.rsaEncryption:
                raise EncodingError("Public Key Algorithm not supported.")
            keydata, _ = decoder.decode(spki["subjectPublicKey"].asOctets(), asn1Spec=rfc8017.RSAPublicKey())
        except error.PyAsn1Error as err:
            raise EncodingError(f"Malformed public key: {err}") from err
        pykeyd = localize.encode(keydata)
        return cls(pykeyd["modulus"], pykeyd["publicExponent"])


class RSAPrivKey(RSAKey):
    """RSA Private Key class implementation.

    Keeps the CRT components that are considered the "industry standard" for private keys and exposes its
    connected public key.

    Attributes:
        mod: The modulus of the keypair.
        expo: The private exponent of the key.
        pub: The public key of the key.
        p: Private Prime 1.
        q: Private Prime 2.
        exp1: CRT Component dmp1.
        exp2: CRT Component dmq1.
        coeff: CRT Component iqmp.
    """

    def __init__(self,
                 mod: int,
                 pub_exp: int,
                 priv_exp: int,
                 p: int | None = None,
                 q: int | None = None,
                 exp1: int | None = None,
                 exp2: int | None = None,
                 coeff: int | None = None) -> None:
        super().__init__(mod, priv_exp)
        self.pub: RSAPubKey = RSAPubKey(mod, pub_exp)
        self.p: int | None = None
        self.q: int | None = None
        self.exp1: int | None = None
        self.exp2: int | None = None
        self.coeff: int | None = None
        if p and q:
            self.p = p
            self.q = q
            self.exp1 = exp1 if exp1 is not None else priv_exp % (p - 1)
            self.exp2 = exp2 if exp2 is not None else priv_exp % (q - 1)
            self.coeff = coeff if coeff is not None else pow(q, -1, p)

    @property
    def has_crt(self) -> bool:
        return None not in (self.p, self.q, self.exp1, self.exp2, self.coeff)

    def c_rsa(self, message: int) -> int:
        """Performs core RSA operation accelerated with CRT. (Sign)

        Raises:
            ValueError: If the message is out of range for the current key.
        """
        if not self.has_crt:
            return super().c_rsa(message)
        if not 0 <= message < self.mod:
            raise ValueError("Message representative must be in range [0, mod-1]")
        m_1 = pow(message, self.exp1, self.p)
        m_2 = pow(message, self.exp2, self.q)
        h = ((m_1 - m_2) * self.coeff) % self.p
        return m_2 + self.q * h

    def sign(self, message: bytes, sha: str = "sha256") -> bytes:
        """Signs the message with RSASSA-PKCS1-v1_5.

        Args:
            message: The message to sign.
            sha: The SHA algorithm to use.

        Returns:
            The raw signature, as long as the modulus in bytes.

        Raises:
            KeyError: If `sha` is not a supported hash.
            RuntimeError: If the key is too small for the DigestInfo.
        """
        hasher, ident = HASH_TLL[sha]
        algid = rfc8017.DigestAlgorithm()
        algid["algorithm"] = ident
        algid["parameters"] = univ.Null("")
        payload = rfc8017.DigestInfo()
        payload["digestAlgorithm"] = algid
        payload["digest"] = hasher(message).digest()
        encoded = encoder.encode(payload)
        if self.bsize < len(encoded) + 11:
            raise RuntimeError("Hash function too large for current key.")
        ps = b"\xFF" * (self.bsize - len(encoded) - 3)
        em = bytes_to_integer(b"\x00\x01" + ps + b"\x00" + encoded)
        return integer_to_bytes(self.c_rsa(em), self.bsize)

    def to_der(self) -> bytes:
        """DER encoding of the PKCS#8 PrivateKeyInfo of this key.

        Raises:
            EncodingError: If the key has no CRT components.
        """
        if not self.has_crt:
            raise EncodingError("CRT-less private keys cannot be exported to PKCS#8.")
        interkey = rfc8017.RSAPrivateKey()
        interkey["version"] = 0
        interkey["modulus"] = self.mod
        interkey["publicExponent"] = self.pub.expo
        interkey["privateExponent"] = self.expo
        interkey["prime1"] = self.p
        interkey["prime2"] = self.q
        interkey["exponent1"] = self.exp1
        interkey["exponent2"] = self.exp2
        interkey["coefficient"] = self.coeff
        pkalgo = rfc5208.AlgorithmIdentifier()
        pkalgo["algorithm"] = rfc8017.rsaEncryption
        pkalgo["parameters"] = univ.Null("")
        pkraw = rfc5208.PrivateKeyInfo()
        pkraw["version"] = 0
        pkraw["privateKeyAlgorithm"] = pkalgo
        pkraw["privateKey"] = encoder.encode(interkey)
        return encoder.encode(pkraw)

    @classmethod
    def from_der(cls, payload: bytes) -> "RSAPrivKey":
        """Imports an RSA private key from PKCS#8 DER, without multi-prime handling.

        Raises:
            EncodingError: If the payload is not a two-prime RSA PrivateKeyInfo.
        """
        try:
            decdata, _ = decoder.decode(payload, asn1Spec=rfc5208.PrivateKeyInfo())
            if decdata["version"] != 0:
                raise EncodingError("Unsupported version of private key information wrapper")
            if decdata["privateKeyAlgorithm"]["algorithm"] != rfc8017.rsaEncryption:
                raise EncodingError("Private Key Algorithm not supported.")
            keydata, _ = decoder.decode(decdata["privateKey"], asn1Spec=rfc8017.RSAPrivateKey())
        except error.PyAsn1Error as err:
            raise EncodingError(f"Malformed private key: {err}") from err
        if keydata["version"] != 0:
            raise EncodingError("Multi-prime keys are not supported.")
        pykeyd = localize.encode(keydata)
        return cls(pykeyd["modulus"], pykeyd["publicExponent"], pykeyd["privateExponent"], pykeyd["prime1"],
                   pykeyd["prime2"], pykeyd["exponent1"], pykeyd["exponent2"], pykeyd["coefficient"])


def bytes_to_integer(msg: bytes) -> int:
    """Converts a byte string to an integer (big-endian, unsigned)."""
    return int.from_bytes(msg, byteorder="big", signed=False)


def integer_to_bytes(msg: int, fixedlen: int | None = None) -> bytes:
    """Converts an integer to a byte string.

    Args:
        msg: The integer to unmarshal.
        fixedlen: The target length of the byte string. Defaults to the minimal length.

    Returns:
        The representative bytes. (AKA Octet String)
    """
    if fixedlen is None:
        fixedlen = max(1, (msg.bit_length() + 7) // 8)
    return msg.to_bytes(fixedlen, byteorder="big", signed=False)
