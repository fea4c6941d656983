"""Planning error taxonomy.

Services raise these; the app-level error handler renders them as JSON and
the HTTP gateway maps status codes back into them. Each class carries the
HTTP status and a short machine-readable code.

    ValidationError   400  bad input, rejected before any write
    Unauthenticated   401  no active session / unknown token
    NotFound          404  card, column, idea, series or workflow is gone
    ConflictError     409  stale revision or duplicate workflow
    PersistenceError  500  database or network failure
"""


class PlanningError(Exception):
    status_code = 500
    code = "planning_error"

    def __init__(self, message=None, code=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        if code is not None:
            self.code = code

    def to_dict(self):
        return {"error": self.code, "message": self.message}


class ValidationError(PlanningError, ValueError):
    status_code = 400
    code = "validation_error"


class Unauthenticated(PlanningError):
    status_code = 401
    code = "unauthenticated"


class NotFound(PlanningError):
    status_code = 404
    code = "not_found"


class ConflictError(PlanningError):
    status_code = 409
    code = "conflict"


class PersistenceError(PlanningError):
    status_code = 500
    code = "persistence_error"


_BY_STATUS = {
    cls.status_code: cls
    for cls in (ValidationError, Unauthenticated, NotFound, ConflictError)
}


def error_for_status(status_code, message=None, code=None):
    """Build the taxonomy error that matches an HTTP status code.

    Anything not explicitly mapped (5xx, 429, ...) is a PersistenceError.
    """
    cls = _BY_STATUS.get(status_code, PersistenceError)
    return cls(message, code=code)
