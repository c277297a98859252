"""API v1 汇总路由：统一挂载所有版本化的子路由。"""

from fastapi import APIRouter

from app.packages.library.api.v1.endpoints import (
    academies,
    audios,
    auth,
    favorites,
    html_layers,
    materials,
    storage_objects,
    uploads,
    users,
)

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(academies.router)
api_router.include_router(users.router)
api_router.include_router(materials.admin_router)
api_router.include_router(uploads.admin_router)
api_router.include_router(materials.router)
api_router.include_router(favorites.router)
api_router.include_router(audios.router)
api_router.include_router(html_layers.router)
api_router.include_router(uploads.callback_router)
api_router.include_router(storage_objects.router)
