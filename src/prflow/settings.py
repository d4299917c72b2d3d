"""Runtime settings for prflow."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, replace
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping

import yaml

from prflow import __version__

CONFIG_FILENAME = "config.yaml"
DEFAULT_MAINTENANCE_INTERVAL = timedelta(hours=48)
DEFAULT_API_URL = "https://api.github.com"


class SettingsError(ValueError):
    """Raised when config.yaml cannot be used."""


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    state_dir: Path
    log_dir: Path
    temp_dir: Path
    install_dir: Path
    editor: str = "vi"
    token_env: str = "GITHUB_TOKEN"
    api_url: str = DEFAULT_API_URL
    branch_prefix: str | None = None
    default_base: str | None = None
    primary_branch: str = "main"
    maintenance_interval: timedelta = DEFAULT_MAINTENANCE_INTERVAL
    auto_update: bool = True
    cli_version: str = __version__

    @property
    def config_file(self) -> Path:
        return self.home_dir / CONFIG_FILENAME

    @property
    def maintenance_stamp(self) -> Path:
        return self.state_dir / "last_update_check"

    def scratch_path(self, filename: str) -> Path:
        return self.temp_dir / filename


def _truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _default_home_dir(environ: Mapping[str, str]) -> Path:
    if value := environ.get("PRFLOW_HOME"):
        return Path(value).expanduser()
    return Path.home() / ".prflow"


def _default_install_dir() -> Path:
    # src/prflow/settings.py -> repository checkout
    return Path(__file__).resolve().parents[2]


def _read_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"{path}: invalid YAML ({exc})") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"{path}: top level must be a mapping")
    return data


def _apply_config(settings: RuntimeSettings, data: Mapping[str, Any]) -> RuntimeSettings:
    updates: dict[str, Any] = {}
    for key in ("branch_prefix", "default_base", "primary_branch", "editor", "token_env", "api_url"):
        if key not in data:
            continue
        value = data[key]
        if value is not None and not isinstance(value, str):
            raise SettingsError(f"config '{key}' must be a string")
        if value is None and key not in {"branch_prefix", "default_base"}:
            continue
        updates[key] = value
    if "maintenance_interval_hours" in data:
        hours = data["maintenance_interval_hours"]
        if isinstance(hours, bool) or not isinstance(hours, (int, float)) or hours < 0:
            raise SettingsError("config 'maintenance_interval_hours' must be a non-negative number")
        updates["maintenance_interval"] = timedelta(hours=hours)
    if "auto_update" in data:
        if not isinstance(data["auto_update"], bool):
            raise SettingsError("config 'auto_update' must be true or false")
        updates["auto_update"] = settings.auto_update and data["auto_update"]
    if "install_dir" in data and data["install_dir"]:
        updates["install_dir"] = Path(str(data["install_dir"])).expanduser()
    return replace(settings, **updates) if updates else settings


def load_settings(environ: Mapping[str, str] | None = None) -> RuntimeSettings:
    env = os.environ if environ is None else environ
    base = _default_home_dir(env)
    install_dir = Path(env["PRFLOW_INSTALL_DIR"]).expanduser() if env.get("PRFLOW_INSTALL_DIR") else _default_install_dir()
    settings = RuntimeSettings(
        home_dir=base,
        state_dir=base / "state",
        log_dir=base / "logs",
        temp_dir=Path(tempfile.gettempdir()) / "prflow",
        install_dir=install_dir,
        editor=env.get("VISUAL") or env.get("EDITOR") or "vi",
        token_env=env.get("PRFLOW_TOKEN_ENV") or "GITHUB_TOKEN",
        api_url=env.get("PRFLOW_API_URL") or DEFAULT_API_URL,
        branch_prefix=env.get("PRFLOW_BRANCH_PREFIX") or None,
        auto_update=not _truthy(env.get("PRFLOW_DISABLE_AUTO_UPDATE")),
    )
    return _apply_config(settings, _read_config(settings.config_file))
