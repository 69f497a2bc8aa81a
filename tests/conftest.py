"""Shared fixtures for the handshake tests."""

import httpx
import pytest
from cryptography.fernet import Fernet

from salesforce_handshake.config import HandshakeConfig
from salesforce_handshake.oauth.state import StateCodec

STATE_URL = "https://looker.example/state/abc"
CLIENT_ID = "CID1"
CALLBACK_URL = "https://ah.example/callback"


class RecordingTransport:
    """Builds an httpx client whose requests are recorded and answered by a handler."""

    def __init__(self, handler=None, status_code: int = 200, json=None):
        self.requests: list[httpx.Request] = []
        self._handler = handler
        self._status_code = status_code
        self._json = json

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._handler is not None:
            return self._handler(request)
        return httpx.Response(self._status_code, json=self._json)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def cipher_key() -> str:
    return Fernet.generate_key().decode()


@pytest.fixture
def config(cipher_key) -> HandshakeConfig:
    return HandshakeConfig(action_hub_base_url="https://ah.example", cipher_master=cipher_key)


@pytest.fixture
def codec(cipher_key) -> StateCodec:
    return StateCodec(cipher_key)
