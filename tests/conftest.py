from __future__ import annotations

from pathlib import Path

import pytest

from victory_planner.config import CONFIG_ENV_OVERRIDES


@pytest.fixture(autouse=True)
def _isolate_planner_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for env_var in CONFIG_ENV_OVERRIDES.values():
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.setenv("VICTORY_PLANNER_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.setenv("VICTORY_PLANNER_DB", str(tmp_path / "planner.sqlite"))
