"""
QSettings-backed configuration for the workbench runtime.
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from PySide6.QtCore import QSettings

from workbench_core import logger as app_logger
from workbench_core.updater import DEFAULT_RELEASE_PAGE

_LOGGER = app_logger.get_logger()

_ORGANIZATION = "tzfun"
_APPLICATION = "Etcd Workbench"
_MIN_CHECK_INTERVAL_MINUTES = 30
_MAX_CHECK_INTERVAL_MINUTES = 24 * 60
DEFAULT_UPDATE_ENDPOINT = (
    "https://tzfun.github.io/etcd-workbench/app/{target}/{current_version}/update.json"
)
DEFAULT_STAGING_DIR = Path.home() / ".local" / "share" / "Etcd Workbench" / "updates"


def default_update_target() -> str:
    system = platform.system().lower()
    machine = platform.machine().lower()
    os_name = {"darwin": "darwin", "windows": "windows"}.get(system, "linux")
    arch = {"amd64": "x86_64", "arm64": "aarch64"}.get(machine, machine or "x86_64")
    return f"{os_name}-{arch}"


@dataclass(eq=True)
class WorkbenchSettings:
    app_name: str = _APPLICATION
    current_version: str = "1.0.0"
    update_endpoint: str = DEFAULT_UPDATE_ENDPOINT
    release_page: str = DEFAULT_RELEASE_PAGE
    update_public_key: str = ""
    update_target: str = field(default_factory=default_update_target)
    staging_dir: Path = DEFAULT_STAGING_DIR
    host_url: str = "http://127.0.0.1:8002"
    auto_update_check: bool = True
    check_interval_minutes: int = 6 * 60


class SettingsManager:
    """Reads persisted settings and clamps invalid data."""

    def __init__(
        self,
        *,
        store: Optional[QSettings] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._store = store if store is not None else QSettings(_ORGANIZATION, _APPLICATION)
        self._environ = environ if environ is not None else os.environ

    def read_settings(self) -> WorkbenchSettings:
        defaults = WorkbenchSettings()
        settings = WorkbenchSettings(
            app_name=self._read_str("app/name", defaults.app_name),
            current_version=self._read_str("app/version", defaults.current_version),
            update_endpoint=self._read_str("update/endpoint", defaults.update_endpoint),
            release_page=self._read_str("update/releasePage", defaults.release_page),
            update_public_key=self._read_str("update/publicKey", defaults.update_public_key),
            update_target=self._read_str("update/target", defaults.update_target),
            staging_dir=Path(self._read_str("update/stagingDir", str(defaults.staging_dir))),
            host_url=self._read_str("host/url", defaults.host_url),
            auto_update_check=self._read_bool("update/autoCheck", defaults.auto_update_check),
            check_interval_minutes=self._read_check_interval(defaults.check_interval_minutes),
        )

        endpoint = self._environ.get("WORKBENCH_UPDATE_ENDPOINT")
        if endpoint:
            settings.update_endpoint = endpoint
        host_url = self._environ.get("WORKBENCH_HOST_URL")
        if host_url:
            settings.host_url = host_url
        return settings

    def _read_check_interval(self, default: int) -> int:
        raw = self._read_int("update/checkIntervalMinutes")
        if raw is None:
            return default
        if raw < _MIN_CHECK_INTERVAL_MINUTES or raw > _MAX_CHECK_INTERVAL_MINUTES:
            _LOGGER.warning(
                "Invalid update check interval {} in settings. Clamping to safe bounds.",
                raw,
            )
        return max(_MIN_CHECK_INTERVAL_MINUTES, min(_MAX_CHECK_INTERVAL_MINUTES, raw))

    def _read_str(self, name: str, default: str) -> str:
        value = self._raw(name)
        if value is None:
            return default
        text = str(value).strip()
        return text or default

    def _read_bool(self, name: str, default: bool) -> bool:
        value = self._raw(name)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        _LOGGER.warning("Setting {} has unexpected value {!r}.", name, value)
        return default

    def _read_int(self, name: str) -> Optional[int]:
        value = self._raw(name)
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            _LOGGER.warning("Setting {} has unexpected value {!r}.", name, value)
            return None

    def _raw(self, name: str) -> Any:
        if not self._store.contains(name):
            return None
        return self._store.value(name)
