"""Exception taxonomy shared by every stage of the key pipeline.

Each error also derives from the builtin exception the lower layers raise for the same problem, so callers may catch
either the precise type or the builtin family.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class JWKForgeError(Exception):
    """Base class for all errors raised by jwkforge."""


class ValidationError(JWKForgeError, ValueError):
    """Bad key size, usage or algorithm identifier. Raised before any work is done."""


class KeyGenerationError(JWKForgeError, RuntimeError):
    """The underlying key pair generator failed."""


class ConfigurationError(JWKForgeError, LookupError):
    """Unknown or incomplete key ID strategy selection."""


class EncodingError(JWKForgeError, ValueError):
    """Key components are missing or inconsistent during serialization."""


class CertificateBuildError(JWKForgeError, RuntimeError):
    """The self-signed certificate could not be built or signed."""
