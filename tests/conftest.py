"""Pytest fixtures for test configuration.

Global test safety measures:
 - No test talks to a real music service: adapters come from tests/mocks
 - PTE__* variables from the developer's shell are cleared per test
"""
import pytest
from pathlib import Path
from typing import Dict, Any

# Expose mock fixtures (fake adapters, clock, engine factory)
from .mocks.fixtures import *  # noqa: F401,F403


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    import os
    for key in list(os.environ):
        if key.startswith('PTE__') or key in ('PTE_ENABLE_DOTENV', 'PTE_SOURCE_TOKEN', 'PTE_TARGET_TOKEN'):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def test_config(tmp_path: Path) -> Dict[str, Any]:
    """Provide a minimal test configuration as a dict.

    Tests should use this fixture and pass cfg to CLI/modules directly,
    rather than creating config files or setting environment variables.

    Default paths are isolated to tmp_path for test isolation.
    """
    return {
        'log_level': 'DEBUG',
        'transfer': {
            'conflict_resolution': 'skip',
            'batch_size': 50,
            'retry_attempts': 3,
            'retry_base_delay': 0.0,
        },
        'matching': {
            'strategy': 'scoring',
            'min_score': 0.6,
            'title_weight': 0.55,
            'artist_weight': 0.35,
            'album_weight': 0.10,
            'duration_tolerance': 10,
        },
        'providers': {
            'spotify': {'requests_per_second': 1000, 'timeout_seconds': 5},
            'youtube': {'requests_per_second': 1000, 'timeout_seconds': 5, 'privacy_status': 'private'},
            'apple': {'requests_per_second': 1000, 'timeout_seconds': 5, 'storefront': 'us',
                      'developer_token': 'dev-token'},
            'amazon': {'requests_per_second': 1000, 'timeout_seconds': 5},
        },
        'history': {
            'path': str(tmp_path / 'history.db'),
            'max_records': 50,
        },
    }
