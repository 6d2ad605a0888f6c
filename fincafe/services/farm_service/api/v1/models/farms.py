"""
Response models for farm service API endpoints.

Field names are camelCase to match the admin UI, which reads them directly.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class InitializeFarmResponse(BaseModel):
    """Successful farm initialization."""

    message: str
    databaseName: str
    initializedAt: Optional[datetime] = None
    migrationSeconds: Optional[float] = None


class RoleSummary(BaseModel):
    id: str
    name: str


class PermissionSummary(BaseModel):
    id: str
    name: str
    resource: str
    action: str


class PermissionResponse(BaseModel):
    """
    A farm permission and the roles that grant it.

    Example:
        ```python
        {
            "id": "2f0c...",
            "name": "users.read",
            "resource": "users",
            "action": "read",
            "description": "View users",
            "roles": [{"id": "9a1b...", "name": "admin"}]
        }
        ```
    """

    id: str
    name: str
    resource: str
    action: str
    description: Optional[str] = None
    roles: list[RoleSummary] = []


class RoleResponse(BaseModel):
    """A farm role with its permissions and usage counts."""

    id: str
    name: str
    description: Optional[str] = None
    permissions: list[PermissionSummary] = []
    permissionCount: int = 0
    userCount: int = 0


class VarietySummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None


class CropTypeResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    varieties: list[VarietySummary] = []


class CropTypeListResponse(BaseModel):
    cropTypes: list[CropTypeResponse]
