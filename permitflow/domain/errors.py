from __future__ import annotations


class WorkflowError(Exception):
    pass


class NotFoundError(WorkflowError):
    pass


class PreconditionFailedError(WorkflowError):
    pass


class ConflictError(WorkflowError):
    pass


class StoreError(WorkflowError):
    pass
