from fastapi import APIRouter

from image_proxy.api.proxy import router as proxy_router

api_router = APIRouter()
api_router.include_router(proxy_router, tags=["image-proxy"])
