import json
from typing import Any, Dict, List, Optional

import pytest

from sleephub.config import Settings
from sleephub.hub.orchestrator import SessionOrchestrator

# 2025-01-01 00:00:00Z
T0 = 1_735_689_600_000
MINUTE = 60 * 1000
HOUR = 60 * MINUTE


class FakeTransport:
    """In-memory transport that records every frame it is handed."""

    def __init__(self, is_open: bool = True, fail: bool = False):
        self.is_open = is_open
        self.fail = fail
        self.sent: List[Dict[str, Any]] = []

    def send(self, text: str) -> None:
        if self.fail:
            raise ConnectionError("peer went away")
        self.sent.append(json.loads(text))

    def commands(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        return [m for m in self.sent if "command" in m and (name is None or m["command"] == name)]

    def events(self, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        return [m for m in self.sent if "type" in m and (kind is None or m["type"] == kind)]


class FakeClock:
    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def device_message(device_id: str, **fields: Any) -> str:
    return json.dumps({"device_id": device_id, **fields})


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def orchestrator(settings: Settings, clock: FakeClock) -> SessionOrchestrator:
    return SessionOrchestrator(settings=settings, clock=clock)


@pytest.fixture
def observer(orchestrator: SessionOrchestrator) -> FakeTransport:
    transport = FakeTransport()
    orchestrator.attach_transport(transport)
    return transport


@pytest.fixture
def device(orchestrator: SessionOrchestrator) -> FakeTransport:
    """A transport that has announced itself as device esp32-01."""
    transport = FakeTransport()
    orchestrator.attach_transport(transport)
    orchestrator.handle_message(
        transport,
        device_message("esp32-01", data_type="device_status", status="connected"),
    )
    return transport
