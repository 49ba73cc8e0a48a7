# 同步 / 改价审计记录 -> 前端状态页调用
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.repository.status_repo import list_statuses


router = APIRouter(prefix="/update-statuses", tags=["update-statuses"])


class UpdateStatusOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_name: Optional[str] = None
    kind: str
    status: str
    message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@router.get("", response_model=List[UpdateStatusOut])
def read_update_statuses(
    limit: int = Query(50, ge=1, le=500),
    kind: Optional[str] = Query(None, description="sync | price_update"),
    db: Session = Depends(get_db),
) -> List[UpdateStatusOut]:
    """最新的在前"""
    return [UpdateStatusOut.model_validate(row) for row in list_statuses(db, limit=limit, kind=kind)]
