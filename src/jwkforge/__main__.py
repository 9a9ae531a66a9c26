"""The Command Line Interface for the utility.

Generates one key and prints it as JWK (or JWK Set) JSON, PEM blocks and optionally a self-signed certificate.

Typical usage example:

    jwkforge --size 2048 --use sig --alg RS256 --keyset --cert
    OR
    python -m jwkforge -k literal --kid-value my-key
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import logging
import sys
import typing

import jwkforge
from jwkforge import jwk
from jwkforge import pem
from jwkforge.kid import STRATEGY_NAMES
from jwkforge.maker import DEFAULTS
from jwkforge.x509 import SIGNATURE_ALGORITHMS


class HelpData(typing.NamedTuple):
    description: str
    format: typing.Type = str
    choices: list[str] | None = None
    default: typing.Any = None


help_dict: dict[str, HelpData] = {
    "size":
        HelpData("Key size (in bits), a multiple of 8.", format=int, default=DEFAULTS.size),
    "use":
        HelpData("Key usage.", choices=["sig", "enc"], default=DEFAULTS.usage),
    "alg":
        HelpData("JWA algorithm of the key.", default=DEFAULTS.algorithm),
    "kid":
        HelpData("Key ID strategy.", choices=list(STRATEGY_NAMES), default=DEFAULTS.kid),
    "kid_value":
        HelpData("Key ID to use with the literal strategy."),
    "subject":
        HelpData("Subject common name of the certificate. Defaults to the key ID."),
    "sig_alg":
        HelpData("Certificate signature algorithm.", choices=list(SIGNATURE_ALGORITHMS), default="SHA256withRSA"),
}

corep = argparse.ArgumentParser(prog="jwkforge", description="Generate RSA keys as JWK, PEM and X.509.")
corep.add_argument("--version", "-v", action="version", version=f"%(prog)s {jwkforge.__version__}")
corep.add_argument("--verbose", "-V", action="store_true", help="Enable debug logging")
for arg, short in (("size", "-s"), ("use", "-u"), ("alg", "-a"), ("kid", "-k")):
    helper = help_dict[arg]
    corep.add_argument(f"--{arg}",
                       short,
                       type=helper.format,
                       choices=helper.choices,
                       default=helper.default,
                       help=f"{helper.description} (default: {helper.default})")
corep.add_argument("--kid-value", type=help_dict["kid_value"].format, help=help_dict["kid_value"].description)
corep.add_argument("--keyset", "-K", action="store_true", help="Print the key as a JWK Set")
corep.add_argument("--private", "-P", action="store_true", help="Also print the private key (JWK and PEM)")
corep.add_argument("--cert", "-c", action="store_true", help="Also print a self-signed certificate")
corep.add_argument("--subject", type=help_dict["subject"].format, help=help_dict["subject"].description)
corep.add_argument("--sig-alg",
                   choices=help_dict["sig_alg"].choices,
                   default=help_dict["sig_alg"].default,
                   help=help_dict["sig_alg"].description)


def render(record: jwkforge.KeyRecord, args: argparse.Namespace) -> str:
    """Builds the full console output for a generated key."""
    sections = []
    if args.private:
        sections.append("Private key:\n" + jwk.encode(record, args.keyset, include_private=True))
    sections.append("Public key:\n" + jwk.encode(record.to_public(), args.keyset))
    sections.append("X509 Formatted Public Key:\n" + pem.encode_public_key(record.public_key()))
    if args.private:
        sections.append("X509 Formatted Private Key:\n" + pem.encode_private_key(record.private_key()))
    if args.cert:
        cert = jwkforge.self_sign(record, args.subject, args.sig_alg)
        sections.append("X509 Formatted Certificate:\n" + pem.encode_certificate(cert))
    return "\n\n".join(section.rstrip("\n") for section in sections)


def main(argv: list[str] | None = None) -> None:
    """Parses the arguments, generates the key and prints it. Exits with status 1 on failure."""
    args = corep.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        record = jwkforge.make_key(args.size, args.use, args.alg, args.kid, args.kid_value)
        print(render(record, args))
    except jwkforge.JWKForgeError as err:
        print(f"{type(err).__name__}: {err}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
