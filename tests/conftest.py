import logging
import os
import pathlib
import sys
import pytest


# Ensure repo root is on PYTHONPATH for direct package imports (e.g. `import metaddr`).
_REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from metaddr.config import get_config_manager  # noqa: E402
from metaddr.observability import ROOT_LOGGER_NAME  # noqa: E402


SCOPE_UUID = "91978ba2-5f35-459a-86a7-feca1b0512e0"
SESSION_UUID = "5803f8bc-6067-4eb5-951f-2121671c2ec0"
CONTRACT_SPEC_UUID = "def6bc0a-c9dd-4874-948f-5206e6060a84"
SCOPE_SPEC_UUID = "dc83ea70-eacd-40fe-9adf-1cf6148bf8a2"
RECORD_NAME = "recordname"


@pytest.fixture(autouse=True)
def _clean_config(monkeypatch):
    """Every test starts from default configuration with no METADDR_* overrides."""
    for key in list(os.environ):
        if key.startswith("METADDR_"):
            monkeypatch.delenv(key, raising=False)
    mgr = get_config_manager()
    mgr.reset()
    yield
    mgr.reset()


@pytest.fixture(autouse=True)
def _clean_logging():
    """Drop handlers installed by configure_logging so output stays per-test."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    saved_level = root.level
    yield
    for handler in list(root.handlers):
        if getattr(handler, "_metaddr_handler", False):
            root.removeHandler(handler)
    root.setLevel(saved_level)


@pytest.fixture
def scope_uuid():
    return SCOPE_UUID


@pytest.fixture
def session_uuid():
    return SESSION_UUID


@pytest.fixture
def contract_spec_uuid():
    return CONTRACT_SPEC_UUID


@pytest.fixture
def scope_spec_uuid():
    return SCOPE_SPEC_UUID
