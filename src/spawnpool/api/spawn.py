"""
Spawn and ready-notification API endpoints
"""
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from typing import Optional, List

from ..core.launcher import LaunchError, ProcessResource
from ..core.service import WarmPoolService
from ..utils.auth import verify_api_key
from .dependencies import get_pool_service

router = APIRouter(tags=["spawn"])

class SpawnRequest(BaseModel):
    """Spawn request"""
    command: str = Field(..., min_length=1, description="Command line to launch")
    startup_id: Optional[str] = Field(None, description="Startup notification id")

class SpawnResponse(BaseModel):
    """Spawn response"""
    pid: int
    command: str
    startup_id: Optional[str] = None
    launched_at: Optional[str] = None
    warm: bool

class ReadyNotification(BaseModel):
    """Host "resource ready" notification"""
    pid: Optional[int] = Field(None, description="Pid owning the resource")
    hidden: bool = Field(False, description="Current visibility of the resource")
    tags: List[str] = Field(default_factory=list, description="Current placement tags")

class ReadyResponse(BaseModel):
    """Ready notification outcome"""
    pid: Optional[int] = None
    intercepted: bool
    hidden: bool
    tags: List[str]

class ResourceInfo(BaseModel):
    """Resource that went through default handling"""
    pid: Optional[int] = None
    hidden: bool
    tags: List[str]

@router.post("/spawn", response_model=SpawnResponse)
async def spawn(
    request: SpawnRequest,
    api_key: str = Depends(verify_api_key),
    service: WarmPoolService = Depends(get_pool_service),
):
    """Launch a command, handing out a warm process when one is ready"""

    try:
        result = service.spawn(request.command, request.startup_id)
    except LaunchError as e:
        raise HTTPException(status_code=502, detail=e.message)

    return SpawnResponse(**result.to_dict())

@router.post("/resources/ready", response_model=ReadyResponse)
async def resource_ready(
    notification: ReadyNotification,
    api_key: str = Depends(verify_api_key),
    service: WarmPoolService = Depends(get_pool_service),
):
    """Deliver a "resource ready" notification from the host"""

    resource = ProcessResource(
        pid=notification.pid,
        hidden=notification.hidden,
        tags=list(notification.tags),
    )
    intercepted = service.notify_ready(resource)

    return ReadyResponse(
        pid=resource.pid,
        intercepted=intercepted,
        hidden=resource.hidden,
        tags=resource.tags,
    )

@router.get("/resources", response_model=List[ResourceInfo])
async def list_resources(
    api_key: str = Depends(verify_api_key),
    service: WarmPoolService = Depends(get_pool_service),
):
    """List resources that went through default handling"""

    return [
        ResourceInfo(pid=r.pid, hidden=r.hidden, tags=r.tags)
        for r in service.resource_table.resources()
    ]
