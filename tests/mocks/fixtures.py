from __future__ import annotations
import pytest

from pte.db import InMemoryHistoryStore
from pte.providers.base import Platform
from pte.services.transfer_service import TransferEngine
from .fake_adapter import FakeAdapter


class FakeClock:
    """Manual clock; ``sleep`` advances time instead of blocking."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def history():
    return InMemoryHistoryStore()


@pytest.fixture
def engine_config():
    return {
        'transfer': {'conflict_resolution': 'skip', 'batch_size': 50, 'retry_attempts': 3, 'retry_base_delay': 1.0},
        'matching': {'strategy': 'scoring', 'min_score': 0.6},
        'providers': {},
    }


@pytest.fixture
def adapters():
    """One fake adapter per platform, keyed by Platform."""
    return {p: FakeAdapter(p) for p in Platform}


@pytest.fixture
def make_engine(history, engine_config, adapters, fake_clock):
    """Factory building a TransferEngine wired to the fake adapters."""
    engines = []

    def _make(**kwargs):
        kwargs.setdefault('adapter_factory', lambda platform, credential: adapters[platform])
        kwargs.setdefault('clock', fake_clock)
        kwargs.setdefault('sleep', fake_clock.sleep)
        engine = TransferEngine(kwargs.pop('history', history), kwargs.pop('config', engine_config), **kwargs)
        engines.append(engine)
        return engine

    yield _make
    # Never leave a worker blocked on a gate
    for adapter in adapters.values():
        adapter.gate.set()
    for engine in engines:
        engine.cancel_transfer()
        engine.wait(5)
