"""Exception-Hierarchie für strukturierte Fehlerbehandlung.

Worker-Prozesse können Exceptions nicht direkt an den Koordinator
weiterreichen. Sie werden daher per ``to_dict`` in ein picklebares Dict
konvertiert und auf Koordinator-Seite per ``from_dict`` wieder zur
passenden Exception-Klasse aufgelöst.
"""

from __future__ import annotations

from typing import Any

from .error_codes import ErrorCode, error_category


class RoundTripError(Exception):
    """Basis-Exception für alle Fehler der Round-Trip-Verifikation.

    Attributes:
        message: Menschenlesbare Fehlermeldung
        error_code: Numerischer Error-Code (siehe ErrorCode enum)
        context: Dict mit zusätzlichem Kontext für Debugging

    Example:
        >>> try:
        ...     raise RoundTripError("Something went wrong", error_code=4000)
        ... except RoundTripError as e:
        ...     log.error(f"[{e.error_code}] {e.message}", extra=e.context)
    """

    def __init__(
        self,
        message: str,
        error_code: int | ErrorCode = ErrorCode.INTERNAL_ERROR,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = int(error_code)
        self.context = context or {}

    def __str__(self) -> str:
        """String-Repräsentation mit Error-Code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code}, "
            f"context={self.context!r})"
        )

    def __reduce__(self) -> tuple[Any, ...]:
        # Subklassen haben abweichende __init__-Signaturen; Pickling über das Dict.
        return (_rebuild, (self.to_dict(),))

    @property
    def category(self) -> str:
        """Fehler-Kategorie basierend auf error_code."""
        return error_category(self.error_code)

    def to_dict(self) -> dict[str, Any]:
        """Konvertiert Exception zu einem transportierbaren Dict.

        Returns:
            Dict mit keys: ok, error_code, message, context, category

        Example:
            >>> e = ValidationError("Invalid value", field="decimal_places")
            >>> e.to_dict()
            {'ok': False, 'error_code': 1000, 'message': 'Invalid value',
             'context': {'field': 'decimal_places'}, 'category': 'VALIDATION'}
        """
        return {
            "ok": False,
            "error_code": self.error_code,
            "message": self.message,
            "context": dict(self.context),
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoundTripError":
        """Erstellt die passende Exception-Subklasse aus einem Dict."""
        error_code = int(data.get("error_code", ErrorCode.INTERNAL_ERROR))
        message = data.get("message", "Unknown error")
        context = dict(data.get("context") or {})

        exception_class = _get_exception_class(error_code)
        exc = RoundTripError.__new__(exception_class)
        RoundTripError.__init__(exc, message, error_code=error_code, context=context)
        for key in exception_class._context_attrs:
            setattr(exc, key, context.get(key))
        return exc

    _context_attrs: tuple[str, ...] = ()


class ValidationError(RoundTripError):
    """Input-Validierungsfehler (Config, CLI-Argumente, Partitionierung).

    Attributes:
        field: Name des fehlerhaften Felds (optional)
    """

    _context_attrs = ("field",)

    def __init__(
        self,
        message: str,
        field: str | None = None,
        error_code: int | ErrorCode = ErrorCode.VALIDATION_FAILED,
        **context: Any,
    ) -> None:
        if field:
            context["field"] = field
        super().__init__(message, error_code=error_code, context=context)
        self.field = field


class InvalidStateError(ValidationError):
    """Operation im aktuellen Zustand nicht erlaubt (z.B. zweiter ``run()``)."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, error_code=ErrorCode.INVALID_STATE, **context)


class PrecisionMismatchError(RoundTripError):
    """Round-Trip hat einen Wert nicht exakt reproduziert.

    Genau die Bedingung, die das System finden soll. Wird nicht recovered,
    sondern mit Index und beiden beobachteten Werten gemeldet.

    Attributes:
        index: Fehlerhafter Index
        worker_id: Worker, der den Mismatch gefunden hat (optional)
    """

    _context_attrs = ("index", "worker_id")

    def __init__(
        self,
        message: str,
        index: int | None = None,
        worker_id: int | None = None,
        error_code: int | ErrorCode = ErrorCode.PRECISION_MISMATCH,
        **context: Any,
    ) -> None:
        if index is not None:
            context["index"] = index
        if worker_id is not None:
            context["worker_id"] = worker_id
        super().__init__(message, error_code=error_code, context=context)
        self.index = index
        self.worker_id = worker_id


class InternalError(RoundTripError):
    """Interne Fehler (Bugs, verletzte Invarianten)."""

    def __init__(
        self,
        message: str,
        error_code: int | ErrorCode = ErrorCode.INTERNAL_ERROR,
        **context: Any,
    ) -> None:
        super().__init__(message, error_code=error_code, context=context)


class WorkerFaultError(RoundTripError):
    """Worker-Prozess wurde abnormal beendet.

    Entweder durch eine unbehandelte Exception (``WORKER_CRASHED``) oder durch
    einen Exit ohne terminales Ergebnis (``WORKER_FAULT``).

    Attributes:
        worker_id: Betroffener Worker
        exitcode: Exit-Code des Prozesses (negativ = Signal), falls bekannt
    """

    _context_attrs = ("worker_id", "exitcode")

    def __init__(
        self,
        message: str,
        worker_id: int | None = None,
        exitcode: int | None = None,
        error_code: int | ErrorCode = ErrorCode.WORKER_FAULT,
        **context: Any,
    ) -> None:
        if worker_id is not None:
            context["worker_id"] = worker_id
        if exitcode is not None:
            context["exitcode"] = exitcode
        super().__init__(message, error_code=error_code, context=context)
        self.worker_id = worker_id
        self.exitcode = exitcode


def _get_exception_class(error_code: int) -> type[RoundTripError]:
    """Ermittelt Exception-Klasse basierend auf Error-Code."""
    if error_code == ErrorCode.INVALID_STATE:
        return InvalidStateError
    if 1000 <= error_code < 2000:
        return ValidationError
    elif 2000 <= error_code < 3000:
        return PrecisionMismatchError
    elif 4000 <= error_code < 5000:
        return InternalError
    elif 5000 <= error_code < 6000:
        return WorkerFaultError
    else:
        return RoundTripError


def _rebuild(data: dict[str, Any]) -> RoundTripError:
    return RoundTripError.from_dict(data)


__all__ = [
    "RoundTripError",
    "ValidationError",
    "InvalidStateError",
    "PrecisionMismatchError",
    "InternalError",
    "WorkerFaultError",
]
