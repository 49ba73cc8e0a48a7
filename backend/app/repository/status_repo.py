# update_statuses 审计表：每次 sync / 改价一条
# 和业务数据不同，状态行写完立即 commit，保证失败时审计记录也能留下

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.model.update_status import Status, UpdateStatus


def create_status(
    db: Session,
    *,
    product_name: Optional[str],
    kind: str = "sync",
    status: Status = Status.IN_PROGRESS,
    message: Optional[str] = None,
) -> UpdateStatus:
    row = UpdateStatus(
        product_name=product_name,
        kind=kind,
        status=Status(status).value,
        message=message,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_status(
    db: Session,
    row: UpdateStatus,
    *,
    status: Optional[Status] = None,
    message: Optional[str] = None,
) -> UpdateStatus:
    if status is not None:
        row.status = Status(status).value
    if message is not None:
        row.message = message
    db.add(row)
    db.commit()
    return row


def get_status(db: Session, status_id: int) -> Optional[UpdateStatus]:
    return db.get(UpdateStatus, status_id)


def list_statuses(db: Session, *, limit: int = 50, kind: Optional[str] = None) -> List[UpdateStatus]:
    """最新的在前"""
    stmt = select(UpdateStatus)
    if kind:
        stmt = stmt.where(UpdateStatus.kind == kind)
    stmt = stmt.order_by(UpdateStatus.created_at.desc(), UpdateStatus.id.desc()).limit(max(1, int(limit)))
    return list(db.scalars(stmt))
