class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ValidationError(AppError):
    """Raised for malformed input: bad times, bad identifiers, unresolvable references."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class AuthorizationError(AppError):
    """Raised when the caller's role does not allow the requested view or write."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str | None = None):
        if resource_id is None:
            message = f"{resource_type} not found"
        else:
            message = f"{resource_type} with id {resource_id} not found"
        super().__init__(message, status_code=404)
        self.resource_type = resource_type
        self.resource_id = resource_id

class ScheduleConflictError(AppError):
    """Raised when a slot overlaps active entries; carries every conflict found."""
    def __init__(self, conflicts: list):
        super().__init__(
            "Schedule conflicts detected",
            status_code=409,
            details={"conflicts": [conflict.model_dump() for conflict in conflicts]},
        )
        self.conflicts = list(conflicts)

class PersistenceError(AppError):
    """Raised when the backing store fails; the cause is logged, not exposed."""
    def __init__(self, message: str = "Schedule storage is unavailable"):
        super().__init__(message, status_code=500)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
