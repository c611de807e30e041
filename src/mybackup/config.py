from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import json
import yaml

from mybackup.paths import CONTAINMENT_MODES, CONTAINMENT_SUBSTRING
from mybackup.reporter import DEFAULT_LOG_FILE_PREFIX


@dataclass(slots=True)
class BackupConfig:
    max_workers: int | None = None
    containment: str = CONTAINMENT_SUBSTRING
    excludes: list[str] = field(default_factory=list)
    log_to_file: bool = True
    log_dir: Path | None = None
    log_file_prefix: str = DEFAULT_LOG_FILE_PREFIX
    console: bool = False

    def with_overrides(
        self,
        max_workers: int | None = None,
        strict_containment: bool = False,
        console: bool = False,
        no_log_file: bool = False,
    ) -> "BackupConfig":
        updated = replace(self, excludes=list(self.excludes))
        if max_workers is not None:
            updated.max_workers = _as_positive_int(max_workers, "maxWorkers")
        if strict_containment:
            updated.containment = "prefix"
        if console:
            updated.console = True
        if no_log_file:
            updated.log_to_file = False
        return updated


def _as_bool(value: Any, field_name: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise ValueError(f"{field_name} must be a boolean")


def _as_positive_int(value: Any, field_name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{field_name} must be a positive integer or null")
    return value


def _as_list_of_strings(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or any(not isinstance(item, str) for item in value):
        raise ValueError(f"{field_name} must be a list of strings")
    return [item for item in value if item.strip()]


def _as_optional_path(value: Any, field_name: str) -> Path | None:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string path")
    return Path(value).expanduser()


def _load_raw_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ValueError(f"Config file does not exist: {config_path}")

    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in {".yml", ".yaml"}:
        loaded = yaml.safe_load(text)
    elif suffix == ".json":
        loaded = json.loads(text)
    else:
        raise ValueError("Config file must be .yaml/.yml or .json")

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError("Config root must be an object")
    return loaded


def load_config(config_path: Path | None) -> BackupConfig:
    if config_path is None:
        return BackupConfig()

    raw = _load_raw_config(config_path)

    containment = raw.get("containment", CONTAINMENT_SUBSTRING)
    if containment not in CONTAINMENT_MODES:
        raise ValueError(f"containment must be one of: {', '.join(CONTAINMENT_MODES)}")

    prefix = raw.get("logFilePrefix", DEFAULT_LOG_FILE_PREFIX)
    if not isinstance(prefix, str) or not prefix.strip():
        raise ValueError("logFilePrefix must be a non-empty string")

    return BackupConfig(
        max_workers=_as_positive_int(raw.get("maxWorkers"), "maxWorkers"),
        containment=containment,
        excludes=_as_list_of_strings(raw.get("excludes"), "excludes"),
        log_to_file=_as_bool(raw.get("logToFile"), "logToFile", default=True),
        log_dir=_as_optional_path(raw.get("logDir"), "logDir"),
        log_file_prefix=prefix,
        console=_as_bool(raw.get("console"), "console", default=False),
    )
