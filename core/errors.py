"""
core/errors.py -- Error taxonomy shared by the stores, the auth subsystem and the API.

Every error a request can end in is one of these classes. Each carries its
HTTP status as a class attribute so api/main.py can render all of them with a
single exception handler instead of one HTTPException per call site.

  ValidationError      400  missing/blank field, unknown role, malformed request
  NotFoundError        404  no matching active record
  ConflictError        400  duplicate id, dependent records block deletion
  AuthenticationError  401  login failed (one generic message, always)
  StorageError         500  database unreachable or query failure

ConflictError maps to 400, not 409: existing API clients depend on it.

Layer rule: no imports from api/, auth/ or apiary/.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors that terminate a request with a known status."""

    status_code: int = 500
    code: str = "service_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(ServiceError):
    """A required field is missing or blank, or a referenced record does not exist.

    fields lists the offending request fields so clients can highlight them.
    """

    status_code = 400
    code = "validation_error"

    def __init__(self, message: str, fields: list[str] | None = None, code: str | None = None) -> None:
        super().__init__(message, code)
        self.fields = list(fields or [])


class NotFoundError(ServiceError):
    status_code = 404
    code = "not_found"


class ConflictError(ServiceError):
    """The write would violate uniqueness or orphan dependent records.

    count is set when the conflict comes from dependent records, so callers
    can show how many must be moved first.
    """

    status_code = 400
    code = "conflict"

    def __init__(self, message: str, count: int | None = None, code: str | None = None) -> None:
        super().__init__(message, code)
        self.count = count


class AuthenticationError(ServiceError):
    """Login failed. The message never says which factor was wrong."""

    status_code = 401
    code = "bad_credentials"
    GENERIC_MESSAGE = "Invalid credentials."

    def __init__(self) -> None:
        super().__init__(self.GENERIC_MESSAGE)


class StorageError(ServiceError):
    """The database could not complete a query.

    origin names the store operation that failed (e.g. "accounts.insert") and
    db_code carries the driver error code when one is available. Both are for
    logs only -- the HTTP layer withholds them outside debug mode.
    """

    status_code = 500
    code = "storage_error"

    def __init__(self, message: str, origin: str, db_code: str | None = None) -> None:
        super().__init__(message)
        self.origin = origin
        self.db_code = db_code
