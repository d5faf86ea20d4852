from par_tracker.models.request import ParRequest, RequestStatus, RequestType, EmploymentType, PositionDuration
from par_tracker.models.approver import Approver, ApproverDelegate
from par_tracker.models.approval import ApprovalStep, StepStatus
from par_tracker.models.job_id import JobIdCounter
from par_tracker.models.audit import AuditLog, AuditAction, AuditEntityType

__all__ = [
    "ParRequest", "RequestStatus", "RequestType", "EmploymentType", "PositionDuration",
    "Approver", "ApproverDelegate",
    "ApprovalStep", "StepStatus",
    "JobIdCounter",
    "AuditLog", "AuditAction", "AuditEntityType",
]
