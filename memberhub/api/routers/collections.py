"""Named-collection endpoints: bootstrap, get, upsert, clear and bulk import."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from memberhub.api.deps import get_collection_service
from memberhub.modules.collections import (
    CollectionNotRegisteredError,
    CollectionService,
    InvalidCollectionPayloadError,
)
from memberhub.schemas import (
    BootstrapResponse,
    CollectionResponse,
    CollectionWrite,
    ImportRequest,
    SuccessResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_registered(exc: CollectionNotRegisteredError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/bootstrap", response_model=BootstrapResponse, summary="获取全部集合")
async def bootstrap(collections: CollectionService = Depends(get_collection_service)):
    return BootstrapResponse(data=await collections.bootstrap())


@router.get("/collections/{name}", response_model=CollectionResponse, summary="获取单个集合")
async def get_collection(name: str, collections: CollectionService = Depends(get_collection_service)):
    try:
        data = await collections.get(name)
    except CollectionNotRegisteredError as exc:
        raise _not_registered(exc) from exc
    return CollectionResponse(data=data)


@router.put("/collections/{name}", response_model=SuccessResponse, summary="整体写入单个集合")
async def put_collection(
    name: str,
    payload: CollectionWrite,
    collections: CollectionService = Depends(get_collection_service),
):
    try:
        await collections.put(name, payload.data)
        await collections.commit()
    except CollectionNotRegisteredError as exc:
        raise _not_registered(exc) from exc
    except InvalidCollectionPayloadError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SuccessResponse()


@router.delete("/collections/{name}", response_model=SuccessResponse, summary="清空单个集合")
async def clear_collection(name: str, collections: CollectionService = Depends(get_collection_service)):
    try:
        await collections.clear(name)
        await collections.commit()
    except CollectionNotRegisteredError as exc:
        raise _not_registered(exc) from exc
    return SuccessResponse()


@router.post("/import", response_model=SuccessResponse, summary="批量导入集合")
async def import_collections(
    payload: ImportRequest,
    collections: CollectionService = Depends(get_collection_service),
):
    try:
        imported = await collections.import_bulk(payload.collections)
    except InvalidCollectionPayloadError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    logger.info("Bulk import wrote %s", ", ".join(imported) or "nothing")
    return SuccessResponse()


@router.post("/clear", response_model=SuccessResponse, summary="清空全部集合")
async def clear_all(collections: CollectionService = Depends(get_collection_service)):
    await collections.clear_all()
    await collections.commit()
    logger.warning("All collections cleared")
    return SuccessResponse()
