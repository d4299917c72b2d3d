from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SANDBOX_HOME = ROOT / ".test_place" / "prflow-home"
os.environ.setdefault("PRFLOW_HOME", str(SANDBOX_HOME))
os.environ.setdefault("PRFLOW_DISABLE_AUTO_UPDATE", "1")
SANDBOX_HOME.mkdir(parents=True, exist_ok=True)
for entry in (SRC, ROOT):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))

from prflow.settings import RuntimeSettings  # noqa: E402


@pytest.fixture()
def runtime_settings(tmp_path: Path) -> RuntimeSettings:
    base = tmp_path / "runtime"
    home = base / "home"
    state_dir = home / "state"
    log_dir = home / "logs"
    temp_dir = base / "tmp"
    install_dir = base / "install"
    for directory in (home, state_dir, log_dir, temp_dir, install_dir):
        directory.mkdir(parents=True, exist_ok=True)
    return RuntimeSettings(
        home_dir=home,
        state_dir=state_dir,
        log_dir=log_dir,
        temp_dir=temp_dir,
        install_dir=install_dir,
        editor="true",
        cli_version="0.3.0",
    )
