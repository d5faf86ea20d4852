from fastapi import APIRouter

from par_tracker.api.v1 import approvals, approvers, audit, dashboard, requests

api_router = APIRouter()

api_router.include_router(requests.router, prefix="/requests", tags=["requests"])
api_router.include_router(approvals.router, prefix="/approvals", tags=["approvals"])
api_router.include_router(approvers.router, prefix="/approvers", tags=["approvers"])
api_router.include_router(audit.router, prefix="/audit-logs", tags=["audit"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
