"""Shared fixtures: RSA key pairs are expensive, generate them once."""
import os

import pytest

from sealed_env.vault.keys import generate_key_pair


@pytest.fixture(scope="session")
def key_pair():
    """Primary RSA-2048 key pair."""
    return generate_key_pair()


@pytest.fixture(scope="session")
def other_key_pair():
    """Unrelated RSA-2048 key pair for wrong-key tests."""
    return generate_key_pair()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every SEALED_ENV_* variable from the environment."""
    for name in list(os.environ):
        if name.startswith("SEALED_ENV_"):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch
