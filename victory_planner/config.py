from __future__ import annotations

import json
import os
import warnings
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("~/.config/victory-planner/config.json").expanduser()
DEFAULT_DB_PATH = Path("~/.victory-planner.sqlite").expanduser()
DEFAULT_KEY_PREFIX = "victory_planner_"

TASK_PRIORITIES = ("low", "medium", "high")

CONFIG_ENV_OVERRIDES = {
    "db_path": "VICTORY_PLANNER_DB",
    "key_prefix": "VICTORY_PLANNER_KEY_PREFIX",
    "default_task_priority": "VICTORY_PLANNER_TASK_PRIORITY",
    "upsert_match_key": "VICTORY_PLANNER_UPSERT_KEY",
}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("VICTORY_PLANNER_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class PlannerConfig:
    db_path: str = str(DEFAULT_DB_PATH)
    key_prefix: str = DEFAULT_KEY_PREFIX
    default_task_priority: str = "medium"
    # Field used by TableStore.upsert to find the existing row to merge into.
    upsert_match_key: str = "googleEventId"

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _coerce_priority(value: object, default: str, *, key: str) -> str:
    if isinstance(value, str) and value.strip().lower() in TASK_PRIORITIES:
        return value.strip().lower()
    warnings.warn(f"Invalid priority for {key}: {value!r}", RuntimeWarning, stacklevel=2)
    return default


def _coerce_str(value: object, default: str, *, key: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    warnings.warn(f"Invalid string for {key}: {value!r}", RuntimeWarning, stacklevel=2)
    return default


def load_config(path: Path | None = None) -> PlannerConfig:
    cfg = PlannerConfig()
    try:
        data = read_config_file(path)
    except ValueError as exc:
        warnings.warn(f"Ignoring config file: {exc}", RuntimeWarning, stacklevel=2)
        data = {}
    cfg = _apply_dict(cfg, data)
    cfg = _apply_dict(cfg, get_env_overrides())
    return cfg


def _apply_dict(cfg: PlannerConfig, data: dict[str, Any]) -> PlannerConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        if key == "default_task_priority":
            cfg.default_task_priority = _coerce_priority(
                value, cfg.default_task_priority, key=key
            )
            continue
        if key == "db_path":
            cfg.db_path = str(Path(_coerce_str(value, cfg.db_path, key=key)).expanduser())
            continue
        setattr(cfg, key, _coerce_str(value, getattr(cfg, key), key=key))
    return cfg
