"""Errors raised by the workflow service."""


class NotFoundError(LookupError):
    """Base class for entities that are absent or not owned by the caller."""


class WorkflowNotFoundError(NotFoundError):
    pass


class TriggerNotFoundError(NotFoundError):
    pass


class ActionNotFoundError(NotFoundError):
    pass


class RunNotFoundError(NotFoundError):
    pass
