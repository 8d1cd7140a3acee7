"""
Pool Management API

Endpoints for registering, inspecting and removing warm pools.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..core.service import WarmPoolService
from ..utils.auth import verify_api_key
from .dependencies import get_pool_service

router = APIRouter(prefix="/api/v1/pools", tags=["pools"])


# Request/Response Models
class PoolInfo(BaseModel):
    """Pool information"""

    command: str
    capacity: int
    pending: int
    ready: int
    size: int
    fill_ratio: float
    pending_pids: List[int] = []
    ready_pids: List[int] = []


class ReconcilerInfo(BaseModel):
    """Reconciler state"""

    enabled: bool
    running: bool
    interval_seconds: Optional[float] = None


class PoolsResponse(BaseModel):
    """List of pools response"""

    pools: List[PoolInfo]
    pending_total: int
    reconciler: ReconcilerInfo


class RegisterPoolRequest(BaseModel):
    """Register pool request"""

    command: str = Field(..., min_length=1)
    capacity: int = Field(default=1, ge=1)


class RegisterPoolResponse(BaseModel):
    """Register pool response"""

    command: str
    capacity: int
    registered: bool


class UnregisterPoolResponse(BaseModel):
    """Unregister pool response"""

    command: str
    unregistered: bool


class EnableReconcilerRequest(BaseModel):
    """Enable reconciler request"""

    interval_seconds: float = Field(default=30.0, gt=0)


class MetricsResponse(BaseModel):
    """Spawn metrics response"""

    pool_hits: int
    pool_misses: int
    pool_hit_ratio: float
    passthrough: int
    launches: int
    launch_failures: int
    reclaimed: int
    stale_discarded: int
    last_spawn_at: Optional[str] = None


def _reconciler_info(service: WarmPoolService) -> ReconcilerInfo:
    reconciler = service.reconciler
    return ReconcilerInfo(
        enabled=reconciler.enabled,
        running=reconciler.running,
        interval_seconds=reconciler.interval,
    )


@router.get("", response_model=PoolsResponse)
async def list_pools(
    api_key: str = Depends(verify_api_key),
    service: WarmPoolService = Depends(get_pool_service),
):
    """
    List all registered pools with their slot counts.
    """
    pools = [PoolInfo(**status.to_dict()) for status in service.get_status()]

    return PoolsResponse(
        pools=pools,
        pending_total=service.pending_index.count,
        reconciler=_reconciler_info(service),
    )


@router.post("", response_model=RegisterPoolResponse, status_code=201)
async def register_pool(
    request: RegisterPoolRequest,
    api_key: str = Depends(verify_api_key),
    service: WarmPoolService = Depends(get_pool_service),
):
    """
    Register a command and start warming its pool.

    The initial launches happen right after the response is sent.
    """
    if not service.register_command(request.command, request.capacity):
        raise HTTPException(
            status_code=409,
            detail=f"Command already registered or invalid: {request.command}",
        )

    return RegisterPoolResponse(
        command=request.command,
        capacity=request.capacity,
        registered=True,
    )


@router.delete("", response_model=UnregisterPoolResponse)
async def unregister_pool(
    command: str = Query(..., min_length=1),
    api_key: str = Depends(verify_api_key),
    service: WarmPoolService = Depends(get_pool_service),
):
    """
    Unregister a command, killing its warm processes.
    """
    if not service.unregister_command(command):
        raise HTTPException(
            status_code=404,
            detail=f"Command not registered: {command}",
        )

    return UnregisterPoolResponse(command=command, unregistered=True)


@router.post("/reconciler", response_model=ReconcilerInfo)
async def enable_reconciler(
    request: EnableReconcilerRequest,
    api_key: str = Depends(verify_api_key),
    service: WarmPoolService = Depends(get_pool_service),
):
    """
    Enable periodic reconciliation of pending pids (no-op if already enabled).
    """
    service.enable_reconciler(request.interval_seconds)
    return _reconciler_info(service)


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(
    api_key: str = Depends(verify_api_key),
    service: WarmPoolService = Depends(get_pool_service),
):
    """
    Get spawn routing metrics.
    """
    return MetricsResponse(**service.get_metrics().to_dict())
