# Celery 实例：webhook 改价 / 手动 sync 的后台执行

from celery import Celery
from kombu import Exchange, Queue
from app.core.config import settings
from app.core.logging import configure_logging

configure_logging()


'''
初始化 Celery 应用/实例
   - SYNC_TASKS_INLINE=False 时 webhook 把改价投递到这里
   - 同一商品的串行由 VARIANT_LOCK_BACKEND=redis 的分布式锁保证，worker 并发可以 > 1
'''
celery_app = Celery(
    "weight_variant_sync",
    broker=settings.CELERY_BROKER_URL or settings.REDIS_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "app.orchestration.variant_sync.tasks",
    ],
)


celery_app.conf.update(
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=True,                             # 内部还是存 UTC
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_track_started=True,
    broker_connection_retry_on_startup=True,     # 启动时如果 broker 挂了会重试
    # === 容错和超时控制 ===
    worker_prefetch_multiplier=1,    # 一个 worker 一次只取一个任务
    task_acks_late=True,             # worker crash 后任务重新投递；改价本身可重复执行
    broker_heartbeat=30,
    broker_pool_limit=10,
)


celery_app.conf.task_queues = (
    Queue("default", Exchange("default"), routing_key="default"),
    Queue("variant_sync", Exchange("variant_sync"), routing_key="variant_sync"),   # Shopify 变体同步 / 改价
)


celery_app.conf.task_routes = {
    "app.orchestration.variant_sync.tasks.propagate_base_price": {"queue": "variant_sync"},
    "app.orchestration.variant_sync.tasks.sync_product_variants": {"queue": "variant_sync"},
}
