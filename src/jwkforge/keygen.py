"""Core Key Generation Utility, mainly focusing on the generation of random large primes.

This module is responsible for generating IFC key pairs roughly based on FIPS 186-5. We will be focusing on probable
primes. `KeyPairFactory` wraps the generator with the size validation the rest of the pipeline relies on.

Typical usage example:

    factory = KeyPairFactory()
    pub, priv = factory.generate(2048)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import math
import secrets
import threading
from typing import Callable

from jwkforge.errors import KeyGenerationError
from jwkforge.errors import ValidationError
from jwkforge.rsa import RSAPrivKey
from jwkforge.rsa import RSAPubKey

logger = logging.getLogger(__name__)

MIN_KEY_SIZE: int = 512
MAX_KEY_SIZE: int = 16384
DEFAULT_EXPONENT: int = 65537

_SMALL_PRIMES: list[int] = []
_SMALL_PRIMES_CAP: int = 0
_SMALL_PRIMES_LOCK = threading.Lock()
_MINIMUM_PRIME_SEPARATION: int = 100


def _sieve(n: int = 10000) -> list[int]:
    """Implements the Sieve of Eratosthenes.

    Uses the textbook Sieve of Eratosthenes to generate a set of primes up to `n`.
    Includes memory space optimization and sieving until root.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.

    Returns:
        A list of primes up to `n`.
    """
    if n < 2:
        return []
    i_size = (n - 1) // 2
    candidate: list[bool] = [True] * i_size
    for i in range(int(n**0.5) // 2):
        if candidate[i]:
            r = 2 * i + 3
            for j in range((r * r - 3) // 2, i_size, r):
                candidate[j] = False
    return [2] + [(no * 2 + 3) for no, ele in enumerate(candidate) if ele]


def get_pre_primes(n: int = 10000) -> list[int]:
    """Get the small primes, generating them on first use or when a wider range is requested.

    The cache is shared by every generator thread and rebuilt under a lock.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.

    Returns:
        List of primes in ascending order, at least up to `n`.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    global _SMALL_PRIMES
    global _SMALL_PRIMES_CAP
    with _SMALL_PRIMES_LOCK:
        if n > _SMALL_PRIMES_CAP or not _SMALL_PRIMES:
            _SMALL_PRIMES = _sieve(n)
            _SMALL_PRIMES_CAP = n
        return _SMALL_PRIMES


def _trial_division(no: int, n: int = 10000) -> bool:
    """Check the provided `no` against the known small primes.

    Args:
         no: The number to check. Must be integer and non-negative.
         n: The number up to which small primes are used. Defaults to 10000.

    Returns:
        False if `no` cannot be prime, True otherwise.
    """
    if no < 2:
        return False
    for prime in get_pre_primes(n):
        if prime**2 > no:
            return True
        if no % prime == 0:
            return False
    return True


def _miller_rabin(w: int, iters: int) -> bool:
    """Perform Miller-Rabin primality test as specified in FIPS 186-5.

    Args:
        w: Odd integer to be tested.
        iters: Number of Miller-Rabin iterations to perform.

    Returns:
        True if `w` is probably prime, False otherwise.
    """
    if w <= 3:
        return w == 2 or w == 3
    tw = w - 1
    a = (tw & -tw).bit_length() - 1
    m = tw // (2**a)
    for _ in range(iters):
        b = secrets.randbelow(w - 3) + 2
        z = pow(b, m, w)
        if z == 1 or z == w - 1:
            continue
        for _ in range(1, a):
            z = pow(z, 2, w)
            if z == w - 1:
                break
            if z == 1:
                return False
        else:
            return False
    return True


def check_prime(candidate: int, iters: None | int = None, n: int = 10000) -> bool:
    """Performs a composite Primality test, using a limited amount of trial divisions, before a Miller-Rabin test.

    Args:
        candidate: The candidate prime to test.
        iters: Number of Miller-Rabin iterations to perform.
            If not provided will use defaults as per the FIPS 186-5 Appendix C.1
        n: The number up to which small primes are used for trial division. Defaults to 10000.

    Returns:
        True if `candidate` is probably prime, False otherwise.
    """
    if candidate < 2:
        return False
    if not _trial_division(candidate, n):
        return False
    if iters is None:
        if candidate.bit_length() <= 512:
            iters = 40
        elif candidate.bit_length() <= 1024:
            iters = 56
        elif candidate.bit_length() <= 1536:
            iters = 64
        elif candidate.bit_length() <= 2048:
            iters = 70
        else:
            iters = 74
    return _miller_rabin(candidate, iters)


def _generate_probable_prime(size: int, pub: int = DEFAULT_EXPONENT, prm_p: int | None = None) -> int:
    """Generate a probable prime number of the specified bit size.

    Args:
        size: The size of the prime to generate in bits.
        pub: The public exponent the prime has to be usable with.
        prm_p: The other prime in the pair if this is the second generation. Enforces the minimum separation.

    Returns:
        A probable prime number with its two top bits set.

    Raises:
        RuntimeError: If generation loops way beyond a reasonable time and a bit.
    """
    ml = 1 if prm_p is None else 2
    rep_cap = size * 5 * ml
    # Top two bits keep p * q at full length, the low bit skips even candidates.
    msk = (1 << size - 1) | (1 << size - 2) | 1
    for _ in range(rep_cap):
        byts = secrets.randbits(size) | msk
        if prm_p is not None and abs(prm_p - byts) <= (1 << (size - _MINIMUM_PRIME_SEPARATION)):
            continue
        if math.gcd(byts - 1, pub) == 1 and check_prime(byts):
            return byts
    raise RuntimeError(f"Run an improbable {rep_cap} amount of loops with no prime found. "
                       "Check system random number generator.")


def generate_primes(size: int, pub: int = DEFAULT_EXPONENT) -> tuple[int, int]:
    """Generates an IFC-suitable pair of prime numbers.

    Args:
        size: The key size to generate the prime pair for. Must be even and within the supported range.
        pub: The public exponent. Has to be odd and in range `(2**16, 2**256)` exclusive.

    Returns:
        A pair of distinct IFC-suitable prime numbers.

    Raises:
        ValueError: If `size` is out of range or odd, or `pub` does not meet requirements.
    """
    if not MIN_KEY_SIZE <= size <= MAX_KEY_SIZE:
        raise ValueError(f"Size must be between {MIN_KEY_SIZE} and {MAX_KEY_SIZE}.")
    if size % 2 != 0:
        raise ValueError("Size must be an even number.")
    if pub % 2 == 0 or not 2**16 < pub < 2**256:
        raise ValueError("Public exponent does not meet requirements.")
    p = _generate_probable_prime(size // 2, pub)
    q = _generate_probable_prime(size // 2, pub, p)
    while p == q:  # (Un)Likely story.
        q = _generate_probable_prime(size // 2, pub, p)
    return p, q


def generate_key_pair(size: int, pub: int = DEFAULT_EXPONENT) -> tuple[RSAPubKey, RSAPrivKey]:
    """Generates an RSA key pair, including the CRT components of the private key.

    Args:
        size: The modulus size in bits.
        pub: The public exponent.

    Returns:
        A (public key, private key) tuple.
    """
    p, q = generate_primes(size, pub)
    n = p * q
    totient = math.lcm(p - 1, q - 1)
    d = pow(pub, -1, totient)
    return RSAPubKey(n, pub), RSAPrivKey(n, pub, d, p, q)


class KeyPairFactory:
    """Produces RSA key pairs of a requested size.

    The size is checked before the generator is touched, so an invalid request never consumes entropy.

    Attributes:
        generator: Callable taking `(size, public_exponent)` and returning `(RSAPubKey, RSAPrivKey)`.
        public_exponent: Public exponent passed to the generator.
    """

    def __init__(self,
                 generator: Callable[[int, int], tuple[RSAPubKey, RSAPrivKey]] = generate_key_pair,
                 public_exponent: int = DEFAULT_EXPONENT) -> None:
        self.generator = generator
        self.public_exponent = public_exponent

    @staticmethod
    def validate_size(size_bits: int) -> int:
        """Checks a requested key size.

        Raises:
            ValidationError: If the size is not an int, not a multiple of 8 or out of range.
        """
        if isinstance(size_bits, bool) or not isinstance(size_bits, int):
            raise ValidationError(f"Key size (in bits) must be an integer, got {size_bits!r}")
        if size_bits % 8 != 0:
            raise ValidationError(f"Key size (in bits) must be divisible by 8, got {size_bits}")
        if not MIN_KEY_SIZE <= size_bits <= MAX_KEY_SIZE:
            raise ValidationError(f"Key size (in bits) must be between {MIN_KEY_SIZE} and {MAX_KEY_SIZE}, "
                                  f"got {size_bits}")
        return size_bits

    def generate(self, size_bits: int) -> tuple[RSAPubKey, RSAPrivKey]:
        """Generates a key pair of exactly `size_bits` modulus length.

        Raises:
            ValidationError: If `size_bits` is invalid. The generator is not called.
            KeyGenerationError: If the generator fails.
        """
        self.validate_size(size_bits)
        logger.debug("Generating %d-bit RSA key pair", size_bits)
        try:
            return self.generator(size_bits, self.public_exponent)
        except (RuntimeError, ValueError) as err:
            raise KeyGenerationError(f"RSA key generation failed: {err}") from err
