from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.events import EventLogger
from app.db.model.update_status import Status
from app.integrations.shopify.payload_utils import error_message, is_error_response, normalize_shopify_price
from app.orchestration.variant_sync.locks import product_lock
from app.orchestration.variant_sync.remote import call_remote
from app.repository import access_repo, status_repo, variant_repo
from app.services.variants.errors import RemoteRejection, TransientIOError, VariantSyncError
from app.services.variants.metafields import reconcile_metafields
from app.services.variants.modifiers import round_money


logger = logging.getLogger(__name__)

_ONE = Decimal(1)
_ZERO = Decimal(0)


@dataclass(frozen=True)
class PropagationResult:
    status: Status
    message: str = ""
    prices: Tuple[Tuple[int, Decimal], ...] = ()      # (shopify_variant_id, 新价格)


def recompute_price(new_base: Decimal, to_multiply: Any, to_add: Any) -> Decimal:
    """new_base * to_multiply + to_add（缺省 1 / 0），四舍五入到分"""
    m = Decimal(str(to_multiply)) if to_multiply is not None else _ONE
    a = Decimal(str(to_add)) if to_add is not None else _ZERO
    return round_money(new_base * m + a)


def _webhook_base_price(product: Dict[str, Any]) -> Decimal:
    variants = product.get("variants") or []
    raw = (variants[0] or {}).get("price") if variants else None
    price = normalize_shopify_price(raw)
    if price is None:
        raise RemoteRejection(f"webhook payload for product {product.get('id')} has no valid price: {raw!r}")
    return price



"""
入口：Shopify products/update webhook -> on_base_price_changed(shop, product)
    1) 本地没有这个商品 / 还没 sync 过 -> 记录后直接返回 None
    2) 不重新展开组合：按 position 读出已存的合成变体，price = 新价 * to_multiply + to_add
    3) 一次 batch 推送全部 {id, price}
    4) UpdateStatus(kind="price_update")：调用前 IN_PROGRESS，远端 OK -> SUCCESS，远端拒绝 -> FAILURE + 错误体，
       本地异常 -> FAILURE，消息为 "<异常>\n\n<原消息>"
    5) 用新价格重跑 metafields
    webhook 至少投递一次：同样的输入重复调用结果相同；这里不向外抛异常
"""
def on_base_price_changed(
    db: Session,
    client,
    *,
    shop: str,
    product: Dict[str, Any],
    events: Optional[EventLogger] = None,
    lock=None,
) -> Optional[PropagationResult]:

    events = (events or EventLogger()).bind(shop=shop, product_id=product.get("id"))
    title = product.get("title")

    try:
        product_id = int(product.get("id"))
    except (TypeError, ValueError):
        events.emit("price_update.skipped", level=logging.WARNING, reason="payload has no product id")
        return None

    try:
        local = variant_repo.get_product_by_base_id(db, shop, product_id)
    except Exception as e:
        db.rollback()
        logger.exception("price_update.lookup_failed shop=%s product=%s", shop, product_id)
        events.emit("price_update.failed", level=logging.WARNING, error=str(e))
        return PropagationResult(status=Status.FAILURE, message=str(e))

    if local is None or local.variant_shopify_product_id is None:
        logger.info("%s does not need to update any variants shop=%s product=%s", title, shop, product_id)
        events.emit("price_update.skipped", reason="product has no synced variants")
        return None

    try:
        with product_lock(shop, product_id, lock):
            return _propagate(db, client, shop=shop, product=product, local=local, events=events)
    except TransientIOError as e:
        logger.warning("price_update.lock_failed shop=%s product=%s err=%s", shop, product_id, e)
        try:
            status_repo.create_status(db, product_name=title or local.title, kind="price_update",
                                      status=Status.FAILURE, message=str(e))
        except Exception:
            db.rollback()
            logger.exception("price_update.status_create_failed product=%s", product_id)
        return PropagationResult(status=Status.FAILURE, message=str(e))


def _propagate(db: Session, client, *, shop: str, product: Dict[str, Any], local, events: EventLogger) -> PropagationResult:

    title = product.get("title") or local.title
    logger.info("%s is beginning to update its variants", title)
    try:
        status_row = status_repo.create_status(db, product_name=title, kind="price_update")
    except Exception as e:
        # 连状态行都写不进去：不推送，直接返回失败
        db.rollback()
        logger.exception("price_update.status_create_failed shop=%s product=%s", shop, product.get("id"))
        events.emit("price_update.failed", level=logging.WARNING, error=str(e))
        return PropagationResult(status=Status.FAILURE, message=str(e))
    events.emit("price_update.started", status_id=status_row.id)

    try:
        new_base = _webhook_base_price(product)
        token = access_repo.get_access_credential(db, shop)
        if not token:
            raise VariantSyncError(f"No access token stored for shop {shop}")

        rows = variant_repo.get_all_synthesized_variants(db, local.base_shopify_product_id)
        updates = []
        for row in rows:
            if row.shopify_variant_id is None:
                events.emit("variant_sync.data_inconsistency", level=logging.WARNING,
                            reason="synthesized variant has no shopify id", position=row.position)
                continue
            updates.append((row, recompute_price(new_base, row.to_multiply, row.to_add)))

        body = {
            "id": local.variant_shopify_product_id,
            "variants": [{"id": int(row.shopify_variant_id), "price": str(price)} for row, price in updates],
        }
        resp = call_remote("update_product_variants_batch", client.update_product_variants_batch, shop, token, body)

        if is_error_response(resp):
            outcome = Status.FAILURE
            message = error_message(resp)
            events.emit("price_update.rejected", level=logging.WARNING, errors=message)
        else:
            # 远端成功后同步本地缓存的价格
            for row, price in updates:
                row.price = price
            db.commit()
            outcome = Status.SUCCESS
            message = f"{len(updates)} variant prices updated to base {new_base}"
            events.emit("price_update.pushed", variants=len(updates), base_price=new_base)

        report = reconcile_metafields(
            db, client,
            shop=shop, access_token=token, product=local, base_price=new_base, events=events,
        )
        if not report.ok:
            message = f"{message}\n\nMetafield update failed: " + "; ".join(report.failures)

        status_repo.update_status(db, status_row, status=outcome, message=message)
        logger.info("%s update completed with status: %s", title, outcome.value)
        return PropagationResult(
            status=outcome,
            message=message,
            prices=tuple((int(row.shopify_variant_id), price) for row, price in updates),
        )

    except Exception as e:
        db.rollback()
        logger.exception("Something went wrong when updating a product shop=%s product=%s", shop, product.get("id"))
        existing = status_row.message or ""
        message = f"{e}\n\n{existing}"
        try:
            status_repo.update_status(db, status_row, status=Status.FAILURE, message=message)
        except Exception:
            db.rollback()
            logger.exception("price_update.status_update_failed status_id=%s", status_row.id)
        events.emit("price_update.failed", level=logging.WARNING, error=str(e))
        return PropagationResult(status=Status.FAILURE, message=message)
