from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from celery import shared_task

from app.core.celery_app import celery_app  # noqa: F401  确保 shared_task 绑定到本项目的 broker
from app.core.config import settings
from app.core.logging import configure_logging
from app.db.session import SessionLocal
from app.integrations.shopify.shopify_client import ShopifyClient
from app.orchestration.variant_sync.price_propagator import on_base_price_changed
from app.orchestration.variant_sync.sync_reconciler import sync_variants


configure_logging()
logger = logging.getLogger(__name__)

QUEUE = "variant_sync"



'''
 Shopify products/update webhook 触发的改价
 - at-least-once 投递：同一个事件重复执行结果一样
 - 失败只写 UpdateStatus，不向 celery 抛（不重试，等下一次 webhook / 手动 sync）
'''
@shared_task(name="app.orchestration.variant_sync.tasks.propagate_base_price")
def propagate_base_price(shop: str, product: Dict[str, Any]) -> Optional[dict]:
    db = SessionLocal()
    try:
        result = on_base_price_changed(db, ShopifyClient(), shop=shop, product=product)
        if result is None:
            return None
        return {"status": result.status.value, "message": result.message}
    finally:
        db.close()


# 手动 / 运维触发的整次 sync
@shared_task(name="app.orchestration.variant_sync.tasks.sync_product_variants")
def sync_product_variants(shop: str, product_id: int) -> dict:
    db = SessionLocal()
    try:
        result = sync_variants(db, ShopifyClient(), shop=shop, product_id=int(product_id))
        return result.as_response()
    finally:
        db.close()



def dispatch_base_price_changed(shop: str, product: Dict[str, Any]) -> str:
    """SYNC_TASKS_INLINE=True 时当前进程直接跑，否则投递到 variant_sync 队列"""
    if settings.SYNC_TASKS_INLINE:
        propagate_base_price.run(shop, product)
        return "inline"
    propagate_base_price.apply_async(args=[shop, product], queue=QUEUE)
    return "queued"
