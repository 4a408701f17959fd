"""Error taxonomy shared by the core services and the API layer.

Every failure a caller can observe is one of these exceptions. The API
layer turns them into a JSON body ``{"error": kind, "detail": message,
"details": [...]}`` with the matching HTTP status.
"""

from typing import Any, Dict, List, Optional


class ProcurementError(Exception):
    """Base class for all structured failures."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.kind, "detail": self.message}
        if self.details:
            body["details"] = self.details
        return body


class UnauthenticatedError(ProcurementError):
    kind = "unauthenticated"
    status_code = 401


class ForbiddenError(ProcurementError):
    kind = "forbidden"
    status_code = 403


# Prefixes FastAPI puts in front of a field location
REQUEST_LOCATIONS = {"body", "query", "path", "header"}


class InvalidInputError(ProcurementError):
    """Shape, enum or format violation. ``details`` lists offending fields."""

    kind = "invalid_input"
    status_code = 400

    @classmethod
    def from_validation_errors(cls, errors: List[Dict[str, Any]], message: str = "Invalid input"):
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part not in REQUEST_LOCATIONS),
                "message": err.get("msg", ""),
            }
            for err in errors
        ]
        return cls(message, details)

    @property
    def fields(self) -> List[str]:
        return [d["field"] for d in self.details if d.get("field")]


class NotFoundError(ProcurementError):
    kind = "not_found"
    status_code = 404


class ConflictError(ProcurementError):
    kind = "conflict"
    status_code = 409


class GoneError(ProcurementError):
    kind = "gone"
    status_code = 410


class UnprocessableError(ProcurementError):
    """Well-formed request that breaks a business rule."""

    kind = "unprocessable"
    status_code = 422


class InternalError(ProcurementError):
    kind = "internal"
    status_code = 500
