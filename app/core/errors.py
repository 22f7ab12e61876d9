"""Domain errors rendered as RFC 7807 problem responses."""

from dataclasses import dataclass

from app.core.messages import get_message

PROBLEM_TYPE_PREFIX = "urn:problem-type:"


@dataclass(frozen=True)
class FieldViolation:
    """One rejected input field."""

    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class ProblemError(Exception):
    """
    Base for errors that map to a problem response.

    kind becomes the `type` URN suffix, code the machine-readable `code`, and
    title_key the catalog key for the localized `title`.
    """

    kind = "internal-error"
    code = "INTERNAL_ERROR"
    status_code = 500
    title_key = "exception.title.internal-error"
    default_message_key = "error.internal"

    def __init__(
        self,
        message: str | None = None,
        errors: list[FieldViolation] | None = None,
    ) -> None:
        self.message = message or get_message(self.default_message_key)
        self.errors = errors or []
        super().__init__(self.message)

    @property
    def type_uri(self) -> str:
        return PROBLEM_TYPE_PREFIX + self.kind

    def to_problem(self, instance: str) -> dict[str, object]:
        body: dict[str, object] = {
            "type": self.type_uri,
            "title": get_message(self.title_key),
            "status": self.status_code,
            "code": self.code,
            "detail": self.message,
            "instance": instance,
        }
        if self.errors:
            body["errors"] = [e.as_dict() for e in self.errors]
        return body


class UnauthenticatedError(ProblemError):
    """No session, or the session is invalid or expired."""

    kind = "unauthorized"
    code = "UNAUTHORIZED"
    status_code = 401
    title_key = "exception.title.unauthorized"
    default_message_key = "error.auth.not-authenticated"


class InvalidCredentialError(UnauthenticatedError):
    """Wrong password presented for login or password change."""

    default_message_key = "error.auth.invalid-credentials"


class ForbiddenError(ProblemError):
    kind = "forbidden"
    code = "FORBIDDEN"
    status_code = 403
    title_key = "exception.title.access-denied"
    default_message_key = "error.access-denied"


class NotFoundError(ProblemError):
    kind = "not-found"
    code = "NOT_FOUND"
    status_code = 404
    title_key = "exception.title.not-found"
    default_message_key = "error.user.not-found"


class ValidationError(ProblemError):
    """Malformed input; carries one FieldViolation per rejected field."""

    kind = "validation-error"
    code = "VALIDATION_ERROR"
    status_code = 400
    title_key = "exception.title.validation-failed"
    default_message_key = "error.validation"


class ConflictError(ProblemError):
    kind = "conflict"
    code = "CONFLICT"
    status_code = 409
    title_key = "exception.title.conflict"
    default_message_key = "error.validation"
