"""Configures pytest further."""
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from jwkforge.record import assemble
from jwkforge.record import KeyUsage
from jwkforge.rsa import RSAPrivKey
from jwkforge.rsa import RSAPubKey

REFERENCE_SIZES = [1024, 2048]


def pytest_addoption(parser):
    parser.addoption("--skip-slow", action="store_true", default=False, help="skip slower tests")
    parser.addoption("--run-extreme", action="store_true", default=False, help="run extreme value extremely slow tests")


def pytest_collection_modifyitems(config, items):
    skipdict = {}
    if config.getoption("--skip-slow"):
        skipdict["slow"] = pytest.mark.skip(reason="Slow test: needs no --skip-slow option")
    if not config.getoption("--run-extreme"):
        skipdict["extreme"] = pytest.mark.skip(reason="Extreme test: needs --run-extreme option")
    if not skipdict:
        return
    for item in items:
        for k, v in skipdict.items():
            if k in item.keywords:
                item.add_marker(v)


@pytest.fixture(scope="session")
def reference_keys() -> dict[int, rsa.RSAPrivateKey]:
    """Keys made by the `cryptography` package, used as the independent reference."""
    return {size: rsa.generate_private_key(public_exponent=65537, key_size=size) for size in REFERENCE_SIZES}


@pytest.fixture(scope="session", params=REFERENCE_SIZES)
def reference_key(request, reference_keys) -> rsa.RSAPrivateKey:
    return reference_keys[request.param]


def localize_keys(pk: rsa.RSAPrivateKey, crt: bool = True) -> tuple[RSAPubKey, RSAPrivKey]:
    privs = pk.private_numbers()
    pubs = pk.public_key().public_numbers()
    if crt:
        pkey = RSAPrivKey(pubs.n, pubs.e, privs.d, privs.p, privs.q, privs.dmp1, privs.dmq1, privs.iqmp)
    else:
        pkey = RSAPrivKey(pubs.n, pubs.e, privs.d)
    return RSAPubKey(pubs.n, pubs.e), pkey


@pytest.fixture(scope="session")
def localize():
    return localize_keys


@pytest.fixture(scope="session")
def record(reference_key):
    pub, priv = localize_keys(reference_key)
    return assemble(pub, priv, KeyUsage.SIGNING, "RS256", "test-kid")
