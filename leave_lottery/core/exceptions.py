from fastapi import HTTPException, status

class BaseAppException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

class ValidationError(BaseAppException):
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)

class InsufficientPointsError(ValidationError):
    def __init__(self, detail: str = "Insufficient points"):
        super().__init__(detail=detail)

class NotFoundError(BaseAppException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class PermissionDeniedError(BaseAppException):
    def __init__(self, detail: str = "You are not allowed to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

class StateConflictError(BaseAppException):
    """The record changed underneath the caller; the transition is no longer legal."""

    def __init__(self, detail: str = "Stale state, please retry"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
