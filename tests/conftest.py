"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Fresh configuration, registry and engine instances per test.
- Console isolation so captured rich output never leaks between tests.
"""

import sys
from pathlib import Path

import pytest

# Add src to path so we can import 'ssg_macro' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from ssg_macro.config import RuntimeConfig
from ssg_macro.core.engine import ExpansionEngine
from ssg_macro.core.registry import MacroContext, default_registry
from ssg_macro.utils.console import reset_console


@pytest.fixture
def config():
  return RuntimeConfig()


@pytest.fixture
def registry(config):
  return default_registry(config)


@pytest.fixture
def engine(config, registry):
  return ExpansionEngine(config=config, registry=registry)


@pytest.fixture
def context(config):
  return MacroContext(config)


@pytest.fixture(autouse=True)
def isolate_console():
  """Restores the default console backend after tests that swap it."""
  yield
  reset_console()
