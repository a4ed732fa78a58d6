from fastapi import HTTPException, status as http_status

from app.services.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
    ProjectMatesError,
)


def to_http_exception(error: ProjectMatesError) -> HTTPException:
    if isinstance(error, NotFoundError):
        code = http_status.HTTP_404_NOT_FOUND
    elif isinstance(error, PermissionDeniedError):
        code = http_status.HTTP_403_FORBIDDEN
    elif isinstance(error, PreconditionFailedError):
        code = http_status.HTTP_409_CONFLICT
    else:
        code = http_status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(error))
