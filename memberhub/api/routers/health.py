"""Liveness endpoint that also checks database reachability."""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from memberhub.api.deps import get_collection_service
from memberhub.modules.collections import CollectionService
from memberhub.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse, summary="服务与数据库状态")
async def health(collections: CollectionService = Depends(get_collection_service)):
    try:
        await collections.ping()
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Health check failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "message": str(exc)},
        )
    return HealthResponse(status="ok", database="connected", timestamp=datetime.now(timezone.utc))
