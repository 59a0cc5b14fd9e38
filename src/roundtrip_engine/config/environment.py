"""
environment.py
--------------
Umgebungs-Einstellungen für die Verifikation.

- Lädt .env (falls vorhanden) und liest relevante Variablen.
- Stellt Pfade für Logs bereit.

Wichtige .env-Variablen:
  ROUNDTRIP_LOG_LEVEL=CRITICAL|ERROR|WARNING|INFO|DEBUG  (Default: INFO)
  ROUNDTRIP_LOG_DIR=/pfad/zu/logs                         (Default: <repo>/var/logs)
  ROUNDTRIP_WORKERS=8                                     (Default: os.cpu_count())
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# --- Load .env -----------------------------------------------------------------
load_dotenv()

PROJECT_ROOT: Path = Path(__file__).resolve().parents[3]
DEFAULT_LOGS_DIR: Path = PROJECT_ROOT / "var" / "logs"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


# --- Helpers -------------------------------------------------------------------
def _get_choice(name: str, choices: set[str], default: str) -> str:
    raw = os.getenv(name, default).strip().upper()
    return raw if raw in choices else default


def _get_positive_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


# --- Public API ----------------------------------------------------------------
def log_level() -> str:
    """Log-Level aus ``ROUNDTRIP_LOG_LEVEL``; ungültige Werte fallen auf INFO zurück."""
    return _get_choice("ROUNDTRIP_LOG_LEVEL", _LOG_LEVELS, "INFO")


def log_dir() -> Path:
    raw = os.getenv("ROUNDTRIP_LOG_DIR")
    return Path(raw).expanduser() if raw else DEFAULT_LOGS_DIR


def default_worker_count() -> int:
    """Worker-Anzahl: ``ROUNDTRIP_WORKERS`` oder die Parallelität des Hosts."""
    override = _get_positive_int("ROUNDTRIP_WORKERS")
    if override is not None:
        return override
    return os.cpu_count() or 1


__all__ = [
    "PROJECT_ROOT",
    "DEFAULT_LOGS_DIR",
    "log_level",
    "log_dir",
    "default_worker_count",
]
