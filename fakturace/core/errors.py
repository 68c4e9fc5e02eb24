"""Application error hierarchy.

Services raise these; the handlers registered in ``fakturace.main`` turn them
into the ``{"success": false, "error": ..., "errorCode": ...}`` envelope.
Messages are user facing and therefore in Czech.
"""

from __future__ import annotations


class AppError(Exception):
    status_code = 500
    default_message = "Došlo k neočekávané chybě"

    def __init__(self, message: str | None = None, error_code: str | None = None):
        self.message = message or self.default_message
        self.error_code = error_code
        super().__init__(self.message)


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Nejste přihlášeni"


class AuthorizationError(AppError):
    status_code = 403
    default_message = "Nemáte oprávnění k této akci"


class ValidationError(AppError):
    status_code = 400
    default_message = "Neplatná data"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Záznam nebyl nalezen"


class ConflictError(AppError):
    status_code = 409
    default_message = "Záznam již existuje"


class RateLimitError(AppError):
    status_code = 429
    default_message = "Příliš mnoho požadavků. Zkuste to prosím později."


class InvoiceLimitReachedError(AppError):
    status_code = 403
    default_message = (
        "Dosáhli jste měsíčního limitu faktur. "
        "Upgradujte svůj plán pro vytvoření dalších faktur."
    )

    def __init__(self, message: str | None = None):
        super().__init__(message, error_code="INVOICE_LIMIT_REACHED")


class ExternalServiceError(AppError):
    status_code = 502
    default_message = "Externí služba není dostupná"
