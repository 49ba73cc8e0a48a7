from __future__ import annotations
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base


# 店铺 OAuth token（安装流程写入，这里只读）
class ShopAccess(Base):

    __tablename__ = "shop_access"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shop:        Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    oauth_token: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
