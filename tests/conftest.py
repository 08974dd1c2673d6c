"""Shared fixtures: a throwaway App key and an in-memory GitHub."""

import base64
import hashlib

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fakes import TEST_APP_ID, FakeClock, FakeGitHub

from inkwell.github import GitHubAuth, GitHubClient, GitHubPublisher, TokenCache


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def public_key_pem(rsa_private_key: rsa.RSAPrivateKey) -> bytes:
    return rsa_private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@pytest.fixture(scope="session")
def private_key_b64(private_key_pem: str) -> str:
    """The key the way it is stored in GITHUB_APP_PRIVATE_KEY."""
    return base64.b64encode(private_key_pem.encode("ascii")).decode("ascii")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_cache(clock: FakeClock) -> TokenCache:
    return TokenCache(clock=clock)


@pytest.fixture
def fake_github() -> FakeGitHub:
    fake = FakeGitHub()
    repo = fake.add_repo("octo/site", branches=["main", "drafts"])
    repo.files[("main", "posts/.gitkeep")] = ("", hashlib.sha1(b"").hexdigest())
    repo.files[("main", "_posts/.gitkeep")] = ("", hashlib.sha1(b"").hexdigest())
    return fake


@pytest.fixture
def http_client(fake_github: FakeGitHub) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_github.handler))


@pytest.fixture
def auth(private_key_b64: str, token_cache: TokenCache) -> GitHubAuth:
    return GitHubAuth(app_id=TEST_APP_ID, private_key=private_key_b64, token_cache=token_cache)


@pytest.fixture
def github_client(auth: GitHubAuth, http_client: httpx.AsyncClient) -> GitHubClient:
    return GitHubClient(auth, http_client=http_client)


@pytest.fixture
def publisher(github_client: GitHubClient) -> GitHubPublisher:
    return GitHubPublisher(github_client, guarded_dirs=("_posts", "posts"))
