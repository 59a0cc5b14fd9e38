"""
LogService – Logging-Wrapper mit Console- und mehrprozess-fähigem File-Handler.

Koordinator und Worker-Prozesse schreiben in dieselbe Datei (``roundtrip.log``);
``ConcurrentRotatingFileHandler`` serialisiert die Zugriffe über einen Lock-File.
Pytest-tauglich: in Tests propagieren die Logger und die Console bleibt stumm.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional

from concurrent_log_handler import ConcurrentRotatingFileHandler

from roundtrip_engine.config import environment

LOGGER_NAME = "RoundTrip"
LOG_FILENAME = "roundtrip.log"

_setup_lock = threading.Lock()
_services: Dict[str, "LogService"] = {}


class LogService:
    """Dünner Wrapper um einen Logger unterhalb von ``RoundTrip``.

    Handler hängen nur am Basis-Logger; benannte Services (``worker-3``)
    loggen als Kind-Logger über diese Handler.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        console: Optional[bool] = None,
        log_dir: Optional[Path] = None,
        level: Optional[str] = None,
    ) -> None:
        self.name = name
        base = logging.getLogger(LOGGER_NAME)
        self.logger = base.getChild(name) if name else base

        with _setup_lock:
            if not getattr(base, "_roundtrip_configured", False):
                self._setup_base(base, console=console, log_dir=log_dir, level=level)

    # ------------------------- Logger Setup -------------------------

    @staticmethod
    def _setup_base(
        base: logging.Logger,
        console: Optional[bool],
        log_dir: Optional[Path],
        level: Optional[str],
    ) -> None:
        base.setLevel(level or environment.log_level())

        # Pytest-Kompatibilität: propagate in Tests aktivieren (caplog)
        in_pytest = "PYTEST_CURRENT_TEST" in os.environ
        base.propagate = bool(in_pytest)
        use_console = console if console is not None else not in_pytest

        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S"
        )

        if use_console:
            ch = logging.StreamHandler()
            ch.setFormatter(formatter)
            ch.setLevel(logging.WARNING)
            base.addHandler(ch)

        target_dir = Path(log_dir) if log_dir is not None else environment.log_dir()
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            fh = ConcurrentRotatingFileHandler(
                str(target_dir / LOG_FILENAME),
                maxBytes=10_000_000,
                backupCount=7,
                encoding="utf-8",
            )
        except OSError as exc:
            # Notbetrieb ohne Datei
            base.warning(f"[LogService] File-Logging deaktiviert: {exc}")
        else:
            fh.setFormatter(formatter)
            fh.setLevel(logging.DEBUG)
            base.addHandler(fh)

        base._roundtrip_configured = True  # type: ignore[attr-defined]

    # ----------------------- Öffentliche API -----------------------

    def log_system(self, message: str, level: str = "INFO") -> None:
        self.logger.log(logging.getLevelName(level.upper()), message)

    def log_exception(self, msg: str, exc: BaseException) -> None:
        self.logger.error(f"{msg}: {exc}", exc_info=exc)


def get_log_service(name: Optional[str] = None) -> LogService:
    """Prozessweit gecachter LogService pro Name."""
    key = name or ""
    service = _services.get(key)
    if service is None:
        service = LogService(name=name)
        _services[key] = service
    return service


def reset_logging() -> None:
    """Entfernt alle Handler (Tests, neue Log-Verzeichnisse)."""
    base = logging.getLogger(LOGGER_NAME)
    with _setup_lock:
        for handler in list(base.handlers):
            base.removeHandler(handler)
            handler.close()
        base._roundtrip_configured = False  # type: ignore[attr-defined]
        _services.clear()


__all__ = ["LogService", "get_log_service", "reset_logging", "LOGGER_NAME"]
