# 健康检查（可选 DB 探活）

import logging

from fastapi import APIRouter, Query
from sqlalchemy import text
from app.db.session import engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: bool = Query(False, description="为 true 时额外 ping 一次数据库")):
    if not db:
        return {"status": "ok"}
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("health.db_unreachable err=%s", type(e).__name__)
        return {"status": "degraded", "db": "unreachable"}
    return {"status": "ok", "db": "ok"}
