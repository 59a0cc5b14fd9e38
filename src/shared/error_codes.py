"""Error-Codes für die Round-Trip-Verifikation.

Die Codes werden zwischen Worker-Prozessen und Koordinator ausgetauscht
(siehe ``shared.exceptions.RoundTripError.to_dict``) und bestimmen außerdem
den Exit-Code der CLI.
"""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Error-Codes mit festen Bereichen.

    Code-Bereiche:
        0:          Erfolg (kein Fehler)
        1000-1999:  Validation Errors (Config/Argumente, recoverable)
        2000-2999:  Verification Errors (Präzisionsverlust, nicht recoverable)
        3000-3999:  I/O Errors
        4000-4999:  Internal Errors (Bugs)
        5000-5999:  Worker Errors (Prozess-Abbruch)
    """

    # =========================================================================
    # Success (0)
    # =========================================================================
    OK = 0

    # =========================================================================
    # Validation Errors (1000-1999)
    # =========================================================================
    VALIDATION_FAILED = 1000
    """Allgemeiner Validierungsfehler."""

    INVALID_ARGUMENT = 1001
    """Ungültiges Argument an Funktion übergeben."""

    INVALID_STATE = 1007
    """Objekt in ungültigem Zustand für Operation (z.B. Run bereits gestartet)."""

    # =========================================================================
    # Verification Errors (2000-2999)
    # Deterministisch: ein Retry reproduziert denselben Mismatch.
    # =========================================================================
    PRECISION_MISMATCH = 2000
    """Round-Trip hat den Wert nicht exakt reproduziert."""

    TRANSCODE_MISMATCH = 2001
    """JSON-Transcoding hat den serialisierten Wert verändert."""

    TEXT_MISMATCH = 2002
    """Textform des serialisierten Werts weicht vom Original ab."""

    # =========================================================================
    # I/O Errors (3000-3999)
    # =========================================================================
    DESERIALIZATION_FAILED = 3004
    """Config-Datei konnte nicht geparst werden."""

    # =========================================================================
    # Internal Errors (4000-4999)
    # =========================================================================
    INTERNAL_ERROR = 4000
    """Allgemeiner interner Fehler (Bug)."""

    INVARIANT_VIOLATED = 4004
    """Interne Invariante verletzt."""

    # =========================================================================
    # Worker Errors (5000-5999)
    # =========================================================================
    WORKER_FAULT = 5000
    """Worker-Prozess ohne terminales Ergebnis beendet."""

    WORKER_CRASHED = 5001
    """Unbehandelte Exception im Worker-Prozess."""


def error_category(code: ErrorCode | int) -> str:
    """Gibt die Kategorie eines Error-Codes zurück."""
    code_int = int(code)

    if code_int == 0:
        return "OK"
    elif 1000 <= code_int < 2000:
        return "VALIDATION"
    elif 2000 <= code_int < 3000:
        return "VERIFICATION"
    elif 3000 <= code_int < 4000:
        return "IO"
    elif 4000 <= code_int < 5000:
        return "INTERNAL"
    elif 5000 <= code_int < 6000:
        return "WORKER"
    else:
        return "UNKNOWN"


__all__ = [
    "ErrorCode",
    "error_category",
]
