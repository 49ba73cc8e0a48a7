# 环境变量和配置
# pydantic‑settings 读取 .env = core/config.py

from typing import Optional
from pydantic import SecretStr, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# 本机直接跑 uvicorn 时（不走 Docker），才会用到 model_config.env_file=".env"：
# 此时它会读取 backend/.env

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
    )

    # ========= project config =========
    PROJECT_NAME: str = "Weight Variant Sync"
    ENVIRONMENT: str = "dev"
    API_PREFIX: str = "/api/v1"
    BACKEND_CORS_ORIGINS: str = "http://localhost:3000"


    # ========= Database =========
    # 容器内默认连 docker 网络里的 "db" 服务
    DATABASE_URL: str = Field(
        default="postgresql+psycopg://wv_user:wv_pass@db:5432/weight_variants",
        alias="DATABASE_URL",
    )
    REDIS_URL: Optional[str] = Field(default="redis://redis:6379/0", alias="REDIS_URL")


    # ========= celery config =========
    CELERY_BROKER_URL: Optional[str] = None
    CELERY_RESULT_BACKEND: Optional[str] = None
    CELERY_TIMEZONE: str = "America/Chicago"
    # True: webhook / 保存动作直接在当前进程里跑；False: 投递到 celery 队列
    SYNC_TASKS_INLINE: bool = Field(default=True, alias="SYNC_TASKS_INLINE")


    # ========= Shopify API Config =========
    SHOPIFY_API_VERSION: str = Field("2024-01", alias="SHOPIFY_API_VERSION")
    SHOPIFY_WEBHOOK_SECRET: Optional[SecretStr] = Field(None, alias="SHOPIFY_WEBHOOK_SECRET")

    # 网络/HTTP 层 配置
    SHOPIFY_HTTP_TIMEOUT: int = Field(30, alias="SHOPIFY_HTTP_TIMEOUT")
    SHOPIFY_HTTP_RETRIES: int = Field(3, alias="SHOPIFY_HTTP_RETRIES")
    SHOPIFY_HTTP_BACKOFF_MS: int = Field(200, alias="SHOPIFY_HTTP_BACKOFF_MS")

    # ========= Metafields Config =========
    METAFIELD_NAMESPACE: str = Field("global", alias="METAFIELD_NAMESPACE")
    METAFIELD_TYPE: str = Field("single_line_text_field", alias="METAFIELD_TYPE")


    # ========= variant sync config =========
    VARIANT_MAX_GROUPS: int = 3            # Shopify 一个商品最多 3 个 option
    VARIANT_MAX_OPTIONS: int = 10          # 每组最多 10 个选项（前端同样限制）
    ADDITIONAL_LABEL_MAX_LEN: int = 75

    # 同一个商品的 sync / 改价 必须串行：redis=多 worker 共享锁；local=单进程内存锁
    VARIANT_LOCK_BACKEND: str = Field("local", alias="VARIANT_LOCK_BACKEND")
    VARIANT_LOCK_KEY_PREFIX: str = Field("variant-sync:lock", alias="VARIANT_LOCK_KEY_PREFIX")
    VARIANT_LOCK_TIMEOUT_SEC: int = Field(300, ge=10, alias="VARIANT_LOCK_TIMEOUT_SEC")          # 锁租期
    VARIANT_LOCK_BLOCKING_SEC: int = Field(30, ge=0, alias="VARIANT_LOCK_BLOCKING_SEC")          # 抢锁最长等待


settings = Settings()  # 只从环境读取（含 .env）
