class ProjectMatesError(Exception):
    """Base class for errors a caller can act on."""


class PreconditionFailedError(ProjectMatesError, ValueError):
    """The operation is not allowed in the current state. Retrying without
    changing that state will fail again."""


class NotFoundError(ProjectMatesError, LookupError):
    pass


class PermissionDeniedError(ProjectMatesError):
    pass
