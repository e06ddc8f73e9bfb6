class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when the scheduler encounters a logical error or invalid state."""
    def __init__(self, message: str, details: dict = None, status_code: int = 400):
        super().__init__(message, status_code=status_code, details=details)

class InsufficientDataError(SchedulerError):
    """Raised before any search when subjects, faculty or rooms are empty."""
    def __init__(self, missing: list[str]):
        super().__init__(
            f"Insufficient data for optimization: no {', '.join(missing)} configured",
            details={"missing": list(missing)},
            status_code=422,
        )
        self.missing = list(missing)

class NoEligibleAssignmentError(SchedulerError):
    """Raised when a single session has no eligible faculty x room x slot combination."""
    def __init__(self, subject_id: str, session_number: int, reason: str):
        super().__init__(
            f"No eligible assignment for subject {subject_id} session {session_number}: {reason}",
            details={"subject_id": subject_id, "session_number": session_number, "reason": reason},
        )
        self.subject_id = subject_id
        self.session_number = session_number
        self.reason = reason

class PersistenceError(AppError):
    """Raised when the external store cannot be read or written."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=503, details=details)

class RunCancelledError(AppError):
    """Raised at an iteration checkpoint once cancellation was requested."""
    def __init__(self, run_id: str | None = None):
        super().__init__("Optimization run was cancelled", status_code=409, details={"run_id": run_id})
        self.run_id = run_id

class RunNotFoundError(AppError):
    """Raised when a run handle is unknown to the registry."""
    def __init__(self, run_id: str):
        super().__init__(f"Optimization run with id {run_id} not found", status_code=404)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
