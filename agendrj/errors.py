# agendrj/errors.py
from typing import Optional


class AgendaError(Exception):
    """Erro de negócio com mensagem legível e status HTTP correspondente."""

    status_code = 400
    code = "agenda_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        data = {"ok": False, "error": self.code, "message": self.message}
        if self.field:
            data["field"] = self.field
        return data


class InvalidInput(AgendaError):
    code = "invalid_input"


class MissingRequiredField(AgendaError):
    code = "missing_required_field"


class MissingProtocol(MissingRequiredField):
    code = "missing_protocol"


class MissingReason(MissingRequiredField):
    code = "missing_reason"


class UnresolvedReference(AgendaError):
    status_code = 422
    code = "unresolved_reference"


class NotFound(AgendaError):
    status_code = 404
    code = "not_found"


class InvalidState(AgendaError):
    status_code = 409
    code = "invalid_state"


class ConcurrentModification(InvalidState):
    code = "concurrent_modification"


class DuplicateAccount(AgendaError):
    status_code = 409
    code = "duplicate_account"


class AuthenticationFailed(AgendaError):
    status_code = 401
    code = "authentication_failed"


class StoreUnavailable(AgendaError):
    # banco fora do ar; só chega ao cliente quando não há espelho local
    status_code = 503
    code = "store_unavailable"
