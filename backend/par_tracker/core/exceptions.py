"""Domain errors raised by the workflow services.

Every business-rule violation is a WorkflowError subclass carrying the HTTP
status the API layer maps it to. Storage failures are never wrapped here;
they surface as SQLAlchemy errors.
"""
from fastapi import status


class WorkflowError(Exception):
    """Base class for all PAR workflow domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ─── Referenced entity absent ───

class NotFoundError(WorkflowError):
    status_code = status.HTTP_404_NOT_FOUND


class RequestNotFoundError(NotFoundError):
    def __init__(self, request_id):
        super().__init__(f"Request {request_id} not found.")
        self.request_id = request_id


class ApproverNotFoundError(NotFoundError):
    def __init__(self, approver_id):
        super().__init__(f"Approver {approver_id} not found.")
        self.approver_id = approver_id


class DelegateNotFoundError(NotFoundError):
    def __init__(self, delegate_id):
        super().__init__(f"Delegate {delegate_id} not found.")
        self.delegate_id = delegate_id


class StepNotFoundError(NotFoundError):
    def __init__(self, step_order: int):
        super().__init__(f"Step {step_order} not found in this request's approval chain.")
        self.step_order = step_order


# ─── State conflicts ───

class ConflictError(WorkflowError):
    status_code = status.HTTP_409_CONFLICT


class InvalidStateError(ConflictError):
    """A transition was attempted from a status that does not allow it."""

    def __init__(self, message: str, current_status: str | None = None):
        super().__init__(message)
        self.current_status = current_status


class NotPendingError(ConflictError):
    def __init__(self, request_id, current_status: str):
        super().__init__(
            f"Request {request_id} is not pending approval (status={current_status})."
        )
        self.current_status = current_status


class NoPendingStepError(ConflictError):
    def __init__(self, approver_id):
        super().__init__(f"No pending approval step found for approver {approver_id}.")


class NotCurrentStepError(ConflictError):
    def __init__(self, step_order: int, current_step_order: int):
        super().__init__(
            f"Step {step_order} is not the current approval step "
            f"(current step is {current_step_order})."
        )
        self.step_order = step_order
        self.current_step_order = current_step_order


class NotAuthorizedError(ConflictError):
    def __init__(self, acting_as: str, approver_name: str):
        super().__init__(
            f"'{acting_as}' is not authorized to act on behalf of {approver_name}."
        )


class ApproverNotInChainError(ConflictError):
    def __init__(self, approver_id):
        super().__init__(f"Approver {approver_id} is not in this request's approval chain.")


class DuplicateDelegateError(ConflictError):
    def __init__(self, delegate_name: str):
        super().__init__(f"Delegate '{delegate_name}' already exists for this approver.")


# ─── Configuration ───

class NoApproversConfiguredError(WorkflowError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self):
        super().__init__("No active approvers configured.")
