import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from reviewers_court import settings
from reviewers_court.github import auth

from github_fakes import FakeGitHub


APP_ID = "12345"


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_pem(rsa_key):
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def app_settings(monkeypatch, private_pem):
    monkeypatch.setattr(settings, "GITHUB_APP_ID", APP_ID)
    monkeypatch.setattr(settings, "GITHUB_PRIVATE_KEY", private_pem)
    monkeypatch.setattr(settings, "GITHUB_PRIVATE_KEY_PATH", None)
    monkeypatch.setattr(settings, "GITHUB_WEBHOOK_SECRET", None)
    monkeypatch.setattr(settings, "GITHUB_API_URL", "https://api.github.com")
    return settings


@pytest.fixture
def signing_key(app_settings, monkeypatch, private_pem):
    monkeypatch.setattr(auth, "_SIGNING_KEY", None)
    auth.init_signing_key(private_pem)
    return auth._SIGNING_KEY


@pytest.fixture
def github():
    return FakeGitHub()
