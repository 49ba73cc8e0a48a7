from __future__ import annotations
from enum import Enum
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base


class Status(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


"""
  每次 sync / 改价 一条记录（只追加的审计表）
  终态之后只允许补充失败详情 message
"""
class UpdateStatus(Base):

    __tablename__ = "update_statuses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_name: Mapped[Optional[str]] = mapped_column(String(255))
    kind:    Mapped[str]           = mapped_column(String(16), nullable=False, default="sync")          # sync / price_update
    status:  Mapped[str]           = mapped_column(String(16), nullable=False, default=Status.IN_PROGRESS.value)
    message: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (Index("idx_update_statuses_status", "status", "created_at"),)
