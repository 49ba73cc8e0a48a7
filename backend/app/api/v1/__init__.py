from fastapi import APIRouter

from .routes_health import router as health_router
from .variants import router as variants_router
from .update_statuses import router as update_statuses_router
from .webhooks_shopify import router as webhooks_router


api_v1 = APIRouter()
api_v1.include_router(health_router)
api_v1.include_router(variants_router)
api_v1.include_router(update_statuses_router)
api_v1.include_router(webhooks_router)      # HMAC 校验，不走 Origin 检查
