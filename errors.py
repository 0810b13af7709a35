class FinanceError(ValueError):
    """Base class for errors reported to API callers with a stable kind."""

    kind = "error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class ValidationError(FinanceError):
    kind = "validation_error"
    status_code = 400


class DuplicateError(FinanceError):
    kind = "duplicate"
    status_code = 409


class NotFoundError(FinanceError):
    kind = "not_found"
    status_code = 404


class AuthError(FinanceError):
    kind = "auth_error"
    status_code = 401


ERROR_KINDS: dict[str, type[FinanceError]] = {
    cls.kind: cls for cls in (ValidationError, DuplicateError, NotFoundError, AuthError)
}
