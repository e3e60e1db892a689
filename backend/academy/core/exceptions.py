class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ScheduleConflictError(AppError):
    """Raised when a write would double-book a student or a teacher."""
    def __init__(self, message: str, conflicts: list[dict] | None = None):
        super().__init__(message, status_code=409, details={"conflicts": conflicts or []})


class RecipientSelectionError(AppError):
    """Raised when a notification request resolves to nobody."""
    def __init__(self, message: str = "Please select at least one recipient."):
        super().__init__(message, status_code=400)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

