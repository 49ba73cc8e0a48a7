from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.events import EventLogger
from app.db.model.update_status import Status
from app.integrations.shopify.payload_utils import (
    remote_product_id, remote_variants, root_variant_fields, variant_payload,
)
from app.orchestration.variant_sync.locks import product_lock
from app.orchestration.variant_sync.remote import call_remote, ensure_accepted
from app.repository import access_repo, status_repo, variant_repo
from app.services.variants.errors import (
    PersistenceError, RemoteRejection, TransientIOError, VariantSyncError, VariantValidationError,
)
from app.services.variants.expander import (
    MAX_SLOTS, VariantDraft, build_option_descriptors, expand_variants, validate_groups,
)
from app.services.variants.metafields import reconcile_metafields
from app.services.variants.ordering import sort_variant_groups


logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    START = "START"
    FETCH_REMOTE_ROOT = "FETCH_REMOTE_ROOT"
    EXPAND = "EXPAND"
    PUSH_REMOTE = "PUSH_REMOTE"
    MAP_IDS = "MAP_IDS"
    PERSIST = "PERSIST"
    RECONCILE_METAFIELDS = "RECONCILE_METAFIELDS"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass(frozen=True)
class SyncResult:
    error: bool
    message: str = ""
    state: SyncState = SyncState.DONE
    failed_at: Optional[SyncState] = None
    variant_count: int = 0

    def as_response(self) -> Dict[str, Any]:
        """保存动作 / API 返回给前端的形状"""
        return {"error": self.error, "message": self.message}


class _StateTracker:
    """记录当前状态，每次流转打一条事件"""

    def __init__(self, events: EventLogger) -> None:
        self.events = events
        self.state = SyncState.START

    def enter(self, state: SyncState, **fields: Any) -> None:
        self.events.emit("variant_sync.state", state=state.value, previous=self.state.value, **fields)
        self.state = state

    def fail(self, reason: str, error: Exception) -> None:
        self.events.emit(
            "variant_sync.state",
            level=logging.WARNING,
            state=SyncState.FAILED.value,
            previous=self.state.value,
            reason=reason,
            error=str(error),
        )



def _failure_reason(e: Exception) -> str:
    if isinstance(e, VariantValidationError):
        return "validation"
    if isinstance(e, RemoteRejection):
        return "remote_rejection"
    if isinstance(e, TransientIOError):
        return "transient_io"
    if isinstance(e, PersistenceError):
        return "persistence"
    return type(e).__name__


def map_remote_ids(drafts: Tuple[VariantDraft, ...], remote: List[Dict[str, Any]]) -> Tuple[VariantDraft, ...]:
    """
    远端返回的变体 id/position 按数组下标对回本地（假设 Shopify 保持提交顺序）。
    远端少于提交数时，多出来的本地草稿保持没有 shopify_variant_id。
    """
    mapped = [d.with_remote_ids(r["id"], r.get("position")) for d, r in zip(drafts, remote)]
    return tuple(mapped) + tuple(drafts[len(mapped):])



"""
入口：sync_variants(db, client, shop, product_id)
    START -> FETCH_REMOTE_ROOT -> EXPAND -> PUSH_REMOTE -> MAP_IDS -> PERSIST -> RECONCILE_METAFIELDS -> DONE
    任一步失败 -> FAILED(reason)，后续步骤不再执行；整次 sync 由调用方重跑
    - 价格 / 是否含税以远端原始商品 variants[0] 为准，不用本地缓存
    - 远端拒绝（{"errors": ...}）时本地合成变体不动
    - 每次调用写一条 UpdateStatus(kind="sync")
    - 不向外抛异常，结果在 SyncResult 里
"""
def sync_variants(
    db: Session,
    client,
    *,
    shop: str,
    product_id: int,
    access_token: Optional[str] = None,
    events: Optional[EventLogger] = None,
    lock=None,
) -> SyncResult:
    try:
        with product_lock(shop, product_id, lock):
            return run_sync(db, client, shop=shop, product_id=product_id,
                            access_token=access_token, events=events)
    except TransientIOError as e:
        # 只有抢锁失败会走到这里，run_sync 本身不抛
        logger.warning("variant_sync.lock_failed shop=%s product=%s err=%s", shop, product_id, e)
        _record_failure_status(db, product_name=str(product_id), message=str(e))
        return SyncResult(error=True, message=str(e), state=SyncState.FAILED, failed_at=SyncState.START)


def run_sync(
    db: Session,
    client,
    *,
    shop: str,
    product_id: int,
    access_token: Optional[str] = None,
    events: Optional[EventLogger] = None,
) -> SyncResult:
    """不加锁的版本，调用方必须已经持有该商品的锁"""

    events = (events or EventLogger()).bind(shop=shop, product_id=product_id)
    tracker = _StateTracker(events)
    tracker.enter(SyncState.START)

    try:
        product = variant_repo.get_product_with_variant_groups(db, shop, product_id)
        status_row = status_repo.create_status(
            db, product_name=(product.title if product and product.title else str(product_id)), kind="sync",
        )
    except Exception as e:
        # 读配置 / 写状态行失败：还没有任何远端调用
        db.rollback()
        tracker.fail(_failure_reason(e), e)
        logger.exception("variant_sync.failed shop=%s product=%s state=%s", shop, product_id, SyncState.START.value)
        return SyncResult(error=True, message=str(e), state=SyncState.FAILED, failed_at=SyncState.START)

    try:
        if product is None:
            raise VariantValidationError(f"No variant configuration saved for product {product_id}")

        # 1) 规则检查：必须在任何远端调用之前
        groups = sort_variant_groups(product.variant_groups)
        if len(groups) > MAX_SLOTS:
            raise VariantValidationError(f"Only {MAX_SLOTS} variant groups are allowed, got {len(groups)}")
        validate_groups(groups)

        token = access_token or access_repo.get_access_credential(db, shop)
        if not token:
            raise VariantSyncError(f"No access token stored for shop {shop}")

        # 2) 远端原始商品：价格 + 是否含税
        tracker.enter(SyncState.FETCH_REMOTE_ROOT)
        root = ensure_accepted(call_remote(
            "get_root_product", client.get_root_product, shop, token, product.base_shopify_product_id,
        ))
        base_price, taxable, root_title = root_variant_fields(root)

        # 3) 组合展开 + options 描述，同一个排序
        tracker.enter(SyncState.EXPAND, base_price=base_price, taxable=taxable, groups=len(groups))
        drafts = expand_variants(
            groups, base_price,
            taxable=taxable,
            shopify_product_id=product.base_shopify_product_id,
        )
        options = build_option_descriptors(groups)

        # 4) 推送：首次创建变体商品，之后全量更新
        tracker.enter(SyncState.PUSH_REMOTE, variants=len(drafts))
        body: Dict[str, Any] = {"variants": [variant_payload(d) for d in drafts]}
        if options:
            body["options"] = options

        creating = product.variant_shopify_product_id is None
        if creating:
            body["title"] = root_title or product.title or str(product.base_shopify_product_id)
            resp = call_remote("create_product", client.create_product, shop, token, body)
        else:
            body["id"] = product.variant_shopify_product_id
            resp = call_remote("update_product", client.update_product, shop, token, body)
        ensure_accepted(resp)

        variant_product_id = remote_product_id(resp) or product.variant_shopify_product_id
        if variant_product_id is None:
            raise RemoteRejection("Shopify did not return the variant product id", resp)

        # 5) 按下标对回远端 id
        returned = remote_variants(resp)
        tracker.enter(SyncState.MAP_IDS, submitted=len(drafts), returned=len(returned))
        mapped = map_remote_ids(drafts, returned)

        if len(returned) < len(drafts):
            events.emit("variant_sync.data_inconsistency", level=logging.WARNING,
                        reason="remote returned fewer variants", submitted=len(drafts), returned=len(returned))

        for extra in returned[len(drafts):]:
            # 远端多出来的变体删掉，失败只记录
            try:
                res = call_remote("delete_variant", client.delete_variant, shop, token, variant_product_id, extra["id"])
                ensure_accepted(res)
                events.emit("variant_sync.extra_variant_deleted", variant_id=extra["id"])
            except VariantSyncError as e:
                events.emit("variant_sync.extra_variant_delete_failed", level=logging.WARNING,
                            variant_id=extra["id"], error=str(e))

        # 6) 落库：先删后插，同一个事务
        tracker.enter(SyncState.PERSIST)
        try:
            if creating:
                variant_repo.update_product(
                    db, product,
                    variant_shopify_product_id=variant_product_id,
                    title=root_title or product.title,
                )
            variant_repo.replace_synthesized_variants(db, product.base_shopify_product_id, mapped)
            db.commit()
        except Exception as e:
            db.rollback()
            events.emit("variant_sync.data_inconsistency", level=logging.ERROR,
                        reason="local persist failed after remote push",
                        variant_product_id=variant_product_id, error=str(e))
            raise PersistenceError(f"Shopify was updated but local save failed: {e}") from e

        # 7) metafields 用这次拿到的新价格
        tracker.enter(SyncState.RECONCILE_METAFIELDS)
        report = reconcile_metafields(
            db, client,
            shop=shop, access_token=token, product=product, base_price=base_price, events=events,
        )
        if not report.ok:
            raise VariantSyncError("Metafield update failed: " + "; ".join(report.failures))

        tracker.enter(SyncState.DONE, variants=len(mapped))
        status_repo.update_status(db, status_row, status=Status.SUCCESS,
                                  message=f"{len(mapped)} variants synced")
        return SyncResult(error=False, message="", state=SyncState.DONE, variant_count=len(mapped))

    except Exception as e:
        failed_at = tracker.state
        db.rollback()
        tracker.fail(_failure_reason(e), e)
        if isinstance(e, VariantSyncError):
            logger.warning("variant_sync.failed shop=%s product=%s state=%s err=%s",
                           shop, product_id, failed_at.value, e)
        else:
            logger.exception("variant_sync.failed shop=%s product=%s state=%s", shop, product_id, failed_at.value)
        try:
            status_repo.update_status(db, status_row, status=Status.FAILURE, message=str(e))
        except Exception:
            db.rollback()
            logger.exception("variant_sync.status_update_failed status_id=%s", status_row.id)
        return SyncResult(error=True, message=str(e), state=SyncState.FAILED, failed_at=failed_at)



def _record_failure_status(db: Session, *, product_name: str, message: str) -> None:
    try:
        status_repo.create_status(db, product_name=product_name, kind="sync",
                                  status=Status.FAILURE, message=message)
    except Exception:
        db.rollback()
        logger.exception("variant_sync.status_create_failed product=%s", product_name)
