# safespend/config.py
from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Dict

import yaml

DEFAULT_CONFIG: Dict[str, object] = {
    "db_path": "safespend.db",
    "store": "safespend.store.sqlite.SQLiteStore",
    "categories": [
        "Food",
        "Transport",
        "Shopping",
        "Bills",
        "Health",
        "Entertainment",
        "Other",
    ],
    "income": {
        "title": "Monthly Income",
        "category": "Income",
    },
    "currency_symbol": "₹",
}

DB_PATH_ENV = "SAFESPEND_DB_PATH"


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def load_config(path: str | Path | None = None) -> Dict[str, object]:
    """Load a YAML config, fill in defaults and apply environment overrides.

    A missing file is not an error; the defaults are used instead.
    """
    data: Dict[str, object] = {}
    if path is not None and Path(path).exists():
        with Path(path).open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
    config = _merge_defaults(data, DEFAULT_CONFIG)
    if os.getenv(DB_PATH_ENV):
        config["db_path"] = os.environ[DB_PATH_ENV]
    return config


def save_config(config: Dict[str, object], path: str | Path) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as fp:
        yaml.safe_dump(config, fp, sort_keys=False, allow_unicode=True)


def income_settings(config: Dict[str, object]) -> tuple[str, str]:
    income = config.get("income") or {}
    return (
        str(income.get("title") or DEFAULT_CONFIG["income"]["title"]),  # type: ignore[index]
        str(income.get("category") or DEFAULT_CONFIG["income"]["category"]),  # type: ignore[index]
    )
