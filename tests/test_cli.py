# pylint: disable=missing-module-docstring
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import json

from cryptography import x509 as cx509
from cryptography.hazmat.primitives import serialization
import pytest

from jwkforge import __main__ as cli
from jwkforge import pem


def split_sections(out: str) -> dict[str, str]:
    sections = {}
    for block in out.strip().split("\n\n"):
        title, _, body = block.partition("\n")
        sections[title] = body
    return sections


def test_cli_defaults_with_keyset(capsys, mocker, record):
    make_key = mocker.patch("jwkforge.make_key", return_value=record)
    cli.main(["--keyset"])
    make_key.assert_called_once_with(2048, "sig", "RS256", "derive", None)
    sections = split_sections(capsys.readouterr().out)
    assert list(sections) == ["Public key:", "X509 Formatted Public Key:"]
    keyset = json.loads(sections["Public key:"])
    assert keyset["keys"][0]["kid"] == record.kid
    assert "d" not in keyset["keys"][0]
    serialization.load_pem_public_key(sections["X509 Formatted Public Key:"].encode("ascii"))


def test_cli_private_and_cert(capsys):
    cli.main(["-s", "512", "-u", "enc", "-a", "RSA-OAEP", "-k", "literal", "--kid-value", "cli-key", "--private",
              "--cert", "--subject", "example"])
    sections = split_sections(capsys.readouterr().out)
    assert list(sections) == [
        "Private key:", "Public key:", "X509 Formatted Public Key:", "X509 Formatted Private Key:",
        "X509 Formatted Certificate:"
    ]
    private = json.loads(sections["Private key:"])
    assert private["kid"] == "cli-key"
    assert private["use"] == "enc"
    assert "d" in private
    key = pem.read_pem(sections["X509 Formatted Private Key:"], "PKCS8")
    assert serialization.load_der_private_key(key, None).key_size == 512
    cert = cx509.load_pem_x509_certificate(sections["X509 Formatted Certificate:"].encode("ascii"))
    assert cert.subject == cert.issuer


@pytest.mark.parametrize("argv,error", [(["--size", "1001"], "ValidationError"),
                                        (["--alg", "ES256"], "ValidationError"),
                                        (["--kid", "literal"], "ConfigurationError")])
def test_cli_errors_exit(capsys, argv, error):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert captured.err.startswith(f"{error}: ")
    assert captured.out == ""


def test_cli_rejects_unknown_choice(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--use", "verify"])
    assert excinfo.value.code == 2
