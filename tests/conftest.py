"""Pytest configuration and shared fixtures.

The project root is put on sys.path so tests import the package without
PYTHONPATH being set externally.
"""
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from configstore_lib.config import StoreSettings  # noqa: E402


@pytest.fixture
def settings(tmp_path):
    """File-backed settings with a short lock timeout for a single plugin."""
    return StoreSettings(
        document_path=str(tmp_path / 'config.json'),
        lock_path=str(tmp_path / 'config.lock'),
        plugin_id='plugin.sample',
        lock_timeout=0.2,
        lock_retry_interval=0.01,
        lock_max_age=60,
    )
