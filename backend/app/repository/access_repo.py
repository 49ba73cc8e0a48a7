# 店铺 OAuth token（安装流程写入）

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.model.shop_access import ShopAccess


def get_access_credential(db: Session, shop: str) -> Optional[str]:
    row = db.scalars(select(ShopAccess).where(ShopAccess.shop == shop)).first()
    return row.oauth_token if row else None


def upsert_access_credential(db: Session, shop: str, oauth_token: str) -> ShopAccess:
    row = db.scalars(select(ShopAccess).where(ShopAccess.shop == shop)).first()
    if row is None:
        row = ShopAccess(shop=shop, oauth_token=oauth_token)
        db.add(row)
    else:
        row.oauth_token = oauth_token
    db.commit()
    db.refresh(row)
    return row
