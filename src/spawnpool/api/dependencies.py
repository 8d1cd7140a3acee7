"""
API dependencies
"""
from fastapi import HTTPException

from ..core.service import WarmPoolService
from ..core.service_setup import get_service


def get_pool_service() -> WarmPoolService:
    """Resolve the running warm pool service"""
    service = get_service()
    if service is None:
        raise HTTPException(status_code=503, detail="Warm pool service not initialized")
    return service
