from fastapi import APIRouter


def create_api_router(prefix: str = "") -> APIRouter:
    from memberhub.api.routers import auth, collections, health

    router = APIRouter(prefix=prefix)
    router.include_router(health.router, tags=["健康检查"])
    router.include_router(collections.router, tags=["集合"])
    router.include_router(auth.router, prefix="/auth", tags=["认证"])
    return router


__all__ = [
    "create_api_router",
]
