import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings create their directories on import; keep them out of the real home.
os.environ.setdefault("SYNCFIT_DATA_DIR", tempfile.mkdtemp(prefix="syncfit-tests-"))

import pytest
from sqlmodel import Session, SQLModel, create_engine

import models  # noqa: F401
from models.pending_op import PendingOperation
from services.api_client import ApiResponse
from services.network_monitor import StaticNetworkMonitor
from services.reliability import ReliabilityLayer


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeApi:
    """Records every request and answers from a scripted list of responses."""

    def __init__(self, default=None):
        self.calls = []
        self.responses = []
        self.default = default or ApiResponse(status=200, data={"ok": True})

    async def request(self, endpoint, method="GET", data=None):
        self.calls.append((method, endpoint, data))
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response


def _copy(operations):
    return [PendingOperation.from_record(op.to_record()) for op in operations]


class MemoryStore:
    def __init__(self, operations=None, fail_save=False):
        self.saved = _copy(operations or [])
        self.save_calls = 0
        self.fail_save = fail_save

    async def load(self):
        return _copy(self.saved)

    async def save(self, operations):
        self.save_calls += 1
        if self.fail_save:
            return False
        self.saved = _copy(operations)
        return True


class FakeMirror:
    def __init__(self, error=None):
        self.upserts = []
        self.error = error

    async def upsert(self, sync_target, data):
        if self.error:
            raise self.error
        self.upserts.append((sync_target, data))
        return True


async def _no_sleep(_seconds):
    return None


@pytest.fixture()
def session_factory():
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)

    def factory():
        return Session(engine)

    return factory


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def api():
    return FakeApi()


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def network():
    return StaticNetworkMonitor()


@pytest.fixture()
def mirror():
    return FakeMirror()


@pytest.fixture()
def make_layer(api, store, network, mirror, clock):
    def factory(**overrides):
        kwargs = dict(
            api=api,
            store=store,
            network=network,
            mirror=mirror,
            clock=clock,
            sleep=_no_sleep,
        )
        kwargs.update(overrides)
        return ReliabilityLayer(
            kwargs.pop("api"),
            kwargs.pop("store"),
            kwargs.pop("network"),
            kwargs.pop("mirror"),
            **kwargs,
        )

    return factory
