class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ValidationError(AppError):
    """Raised when a required selection is missing or a value is out of range.

    Always raised before any store call is made.
    """
    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else None
        super().__init__(message, status_code=400, details=details)
        self.field = field

class ConflictError(AppError):
    """Raised when a teacher is already booked at the requested day/period."""
    def __init__(self, conflict_details: str | None):
        self.conflict_details = conflict_details or "Teacher is already booked for this slot"
        super().__init__(
            f"Teacher conflict: {self.conflict_details}",
            status_code=409,
            details={"conflict_details": self.conflict_details},
        )

class PersistenceError(AppError):
    """Raised when the backing store rejects or fails a read/write."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        super().__init__(message, status_code=status_code, details=details)

class ResourceNotFoundError(PersistenceError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ConfirmationRequiredError(AppError):
    """Raised when a destructive bulk operation was not confirmed."""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)

class SubmissionInProgressError(AppError):
    """Raised when a second submission arrives while one is still saving."""
    def __init__(self):
        super().__init__("Another timetable operation is still in progress", status_code=409)

class OccupancyCollisionError(AppError):
    """Raised when the entry list holds two entries for the same slot."""
    def __init__(self, day_of_week: int, period_id: str, entry_ids: list[str]):
        super().__init__(
            f"Slot (day {day_of_week}, period {period_id}) is held by more than one entry",
            status_code=500,
            details={"day_of_week": day_of_week, "period_id": period_id, "entry_ids": entry_ids},
        )
