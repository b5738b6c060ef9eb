import pytest

from env_resolver.audit import AUDIT
from env_resolver.utils import RUNTIME_MODE_ENV
from env_resolver.validation import REGISTRY


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingSource:
    """In-memory source that records how often it was loaded and can be told to fail."""

    def __init__(self, name, values=None, fail=False):
        self.name = name
        self.values = dict(values or {})
        self.fail = fail
        self.calls = 0

    async def load(self):
        return self.load_sync()

    def load_sync(self):
        self.calls += 1
        if self.fail:
            raise RuntimeError(f"{self.name} unavailable")
        return dict(self.values)


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    monkeypatch.delenv(RUNTIME_MODE_ENV, raising=False)
    AUDIT.clear()
    REGISTRY.clear()
    yield
    AUDIT.clear()
    AUDIT._hooks.clear()
    REGISTRY.clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def production(monkeypatch):
    monkeypatch.setenv(RUNTIME_MODE_ENV, "production")
