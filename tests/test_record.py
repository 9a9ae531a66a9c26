# pylint: disable=missing-module-docstring
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import pytest

from jwkforge import record as rec
from jwkforge.errors import EncodingError
from jwkforge.errors import ValidationError
from jwkforge.rsa import RSAPrivKey
from jwkforge.rsa import RSAPubKey


@pytest.mark.parametrize("usage,expected", [("sig", rec.KeyUsage.SIGNING), ("signing", rec.KeyUsage.SIGNING),
                                            ("enc", rec.KeyUsage.ENCRYPTION),
                                            ("encryption", rec.KeyUsage.ENCRYPTION),
                                            (rec.KeyUsage.ENCRYPTION, rec.KeyUsage.ENCRYPTION)])
def test_parse_usage(usage, expected):
    assert rec.parse_usage(usage) is expected


@pytest.mark.parametrize("usage", ["", "SIG", "verify", None, 1])
def test_parse_usage_rejects(usage):
    with pytest.raises(ValidationError):
        rec.parse_usage(usage)


@pytest.mark.parametrize("alg", sorted(rec.RSA_ALGORITHMS))
def test_check_algorithm_accepts_rsa(alg):
    assert rec.check_algorithm(alg) == alg


@pytest.mark.parametrize("alg", ["ES256", "HS256", "EdDSA", "ECDH-ES", "A128KW"])
def test_check_algorithm_rejects_other_families(alg):
    with pytest.raises(ValidationError, match="belongs to key type"):
        rec.check_algorithm(alg)


@pytest.mark.parametrize("alg", ["", "rs256", "RS1024", None])
def test_check_algorithm_rejects_unknown(alg):
    with pytest.raises(ValidationError, match="Unknown RSA algorithm"):
        rec.check_algorithm(alg)


@pytest.mark.parametrize("alg", [["RS256"], {"RS256": 1}, 256])
def test_check_algorithm_rejects_non_string(alg):
    with pytest.raises(ValidationError, match="Unknown RSA algorithm"):
        rec.check_algorithm(alg)


def test_assemble_rejects_non_string_algorithm(reference_key, localize):
    pub, priv = localize(reference_key)
    with pytest.raises(ValidationError):
        rec.assemble(pub, priv, "sig", ["RS256"], "kid-1")


def test_assemble(reference_key, localize):
    pub, priv = localize(reference_key)
    record = rec.assemble(pub, priv, "signing", "RS256", "kid-1")
    privs = reference_key.private_numbers()
    assert record.key_family == "RSA"
    assert record.size_bits == reference_key.key_size
    assert record.usage is rec.KeyUsage.SIGNING
    assert record.algorithm == "RS256"
    assert record.kid == "kid-1"
    assert record.public == (privs.public_numbers.n, privs.public_numbers.e)
    assert record.private == (privs.d, privs.p, privs.q, privs.dmp1, privs.dmq1, privs.iqmp)
    assert record.has_private


def test_assemble_public_only(reference_key, localize):
    pub, _ = localize(reference_key)
    record = rec.assemble(pub, None, rec.KeyUsage.ENCRYPTION, "RSA-OAEP-256", "kid-2")
    assert record.private is None
    assert not record.has_private
    with pytest.raises(EncodingError):
        record.private_key()


def test_assemble_rejects_mismatched_pair(reference_keys, localize):
    pub, _ = localize(reference_keys[1024])
    _, priv = localize(reference_keys[2048])
    with pytest.raises(ValidationError, match="does not belong"):
        rec.assemble(pub, priv, "sig", "RS256", "kid")


@pytest.mark.parametrize("usage,alg,kid", [("verify", "RS256", "k"), ("sig", "ES256", "k"), ("sig", "RS256", 7)])
def test_assemble_validates(reference_key, localize, usage, alg, kid):
    pub, priv = localize(reference_key)
    with pytest.raises(ValidationError):
        rec.assemble(pub, priv, usage, alg, kid)


def test_record_is_immutable(record):
    with pytest.raises(AttributeError):
        record.kid = "other"
    with pytest.raises(AttributeError):
        record.private = None


def test_to_public(record):
    public = record.to_public()
    assert public.private is None
    assert public.public == record.public
    assert public.kid == record.kid
    assert record.private is not None


def test_key_objects_roundtrip(record):
    pub = record.public_key()
    priv = record.private_key()
    assert isinstance(pub, RSAPubKey)
    assert isinstance(priv, RSAPrivKey)
    assert priv.pub == pub
    assert priv.has_crt
    assert rec.assemble(pub, priv, record.usage, record.algorithm, record.kid) == record
