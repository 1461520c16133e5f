import pytest
from fastapi.testclient import TestClient

from main import create_app
from poto.services.config_service import ConfigStore


@pytest.fixture
def make_client(scan_config):
    clients = []

    def _make(config=None, *, auto_scan=False) -> TestClient:
        app = create_app(ConfigStore(config or scan_config), auto_scan=auto_scan)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()


@pytest.fixture
def wait_idle():
    def _wait(client: TestClient, timeout: float = 30.0) -> None:
        assert client.app.state.scan_manager.wait(timeout)

    return _wait
