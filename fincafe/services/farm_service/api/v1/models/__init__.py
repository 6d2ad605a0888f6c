"""
Response models for farm service API endpoints.
"""

from .farms import (
    CropTypeListResponse,
    CropTypeResponse,
    InitializeFarmResponse,
    PermissionResponse,
    PermissionSummary,
    RoleResponse,
    RoleSummary,
    VarietySummary,
)

__all__ = [
    "CropTypeListResponse",
    "CropTypeResponse",
    "InitializeFarmResponse",
    "PermissionResponse",
    "PermissionSummary",
    "RoleResponse",
    "RoleSummary",
    "VarietySummary",
]
