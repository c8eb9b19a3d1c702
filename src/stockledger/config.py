from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os
import sys

from stockledger.domain.models import DEFAULT_LOW_STOCK_THRESHOLD


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    stock_path: Path
    revenue_path: Path
    history_path: Path
    logs_dir: Path


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def default_base_dir(app_name: str = "StockLedger") -> Path:
    override = os.environ.get("STOCKLEDGER_HOME", "").strip()
    if override:
        return Path(override).expanduser()
    if sys.platform.startswith("win"):
        return _windows_appdata() / app_name
    if sys.platform == "darwin":
        return _mac_app_support() / app_name
    return Path.home() / f".{app_name.lower()}"


def get_app_paths(base_dir: Optional[Path | str] = None) -> AppPaths:
    base = Path(base_dir) if base_dir else default_base_dir()
    logs = base / "logs"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(
        base_dir=base,
        stock_path=base / "stock.dat",
        revenue_path=base / "grand_total.dat",
        history_path=base / "history.log",
        logs_dir=logs,
    )


def low_stock_threshold() -> int:
    raw = os.environ.get("STOCKLEDGER_LOW_STOCK", "").strip()
    if not raw:
        return DEFAULT_LOW_STOCK_THRESHOLD
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_LOW_STOCK_THRESHOLD
    return value if value >= 0 else DEFAULT_LOW_STOCK_THRESHOLD
