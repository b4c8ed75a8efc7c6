class TaskServiceError(Exception):
    """Base for failures that map onto an HTTP error response."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, detail=None):
        super().__init__(detail or self.message)


class ValidationError(TaskServiceError):
    status_code = 400
    message = "Invalid request data"


class NotFoundError(TaskServiceError):
    status_code = 404
    message = "Task not found"


class InternalError(TaskServiceError):
    status_code = 500
    message = "Internal server error"
