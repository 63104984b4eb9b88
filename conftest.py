"""
Repository-level pytest configuration.

  - Point the configuration loader at the repository config directory
  - Keep local runs predictable (default environment, headless browser)

Values already provided by the user or the CI are left untouched.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

from ui_resilience.common import reset_config


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _default_env(project_root: Path) -> Generator[None, None, None]:
    """Set environment defaults if not already provided by the user/CI."""
    defaults = {
        "UI_RESILIENCE_CONFIG_DIR": str(project_root / "config"),
        "ENV": "dev",
        "BROWSER__HEADLESS": "true",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)
    reset_config()

    yield
