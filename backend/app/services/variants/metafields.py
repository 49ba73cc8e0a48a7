# 变体商品上的三个描述性 metafield（价格字符串 / 价格单位 / 副标题）

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.events import EventLogger
from app.integrations.shopify.payload_utils import error_message, is_error_response, metafield_id, price_string
from app.repository import variant_repo
from app.services.variants.errors import RemoteRejection


logger = logging.getLogger(__name__)



@dataclass(frozen=True)
class MetafieldRoutine:
    name: str
    key: str
    id_attr: str                                   # Product 上存远端 id 的字段
    enabled: Callable[[Any], bool]
    value: Callable[[Any, Any], Optional[str]]     # (product, base_price) -> value


ROUTINES: Tuple[MetafieldRoutine, ...] = (
    MetafieldRoutine(
        name="price_string",
        key="SellByWeightPriceString",
        id_attr="price_string_metafield_id",
        enabled=lambda p: bool(p.sell_by_weight),
        value=lambda p, base: price_string(base, p.weight_unit or "lb"),
    ),
    MetafieldRoutine(
        name="price_label",
        key="PriceUnit",
        id_attr="price_label_metafield_id",
        enabled=lambda p: bool(p.price_label),
        value=lambda p, base: p.weight_unit or "lb",
    ),
    MetafieldRoutine(
        name="subtitle",
        key="Subtitle",
        id_attr="additional_label_metafield_id",
        enabled=lambda p: bool((p.additional_label or "").strip()),
        value=lambda p, base: (p.additional_label or "").strip(),
    ),
)


@dataclass
class MetafieldReport:
    actions: Dict[str, str] = field(default_factory=dict)     # routine -> create/update/delete/noop/skipped
    failures: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures



def _is_not_found(resp: Any) -> bool:
    return is_error_response(resp) and "not found" in error_message(resp).lower()


"""
  单个 routine 的四种情况：
    开关关 + 有 id -> 远端删除，清空 id
    开关关 + 无 id -> 什么都不做
    开关开 + 无 id -> 远端创建，记下 id
    开关开 + 有 id -> 原地更新
  重复调用结果不变；三个 routine 互不依赖
"""
def reconcile_one(
    db: Session,
    client,
    routine: MetafieldRoutine,
    *,
    shop: str,
    access_token: Any,
    product,
    base_price: Any,
    events: EventLogger,
) -> str:

    owner_id = product.variant_shopify_product_id
    current_id = getattr(product, routine.id_attr)
    enabled = routine.enabled(product)

    if not enabled:
        if current_id is None:
            events.emit("metafield.noop", routine=routine.name, key=routine.key)
            return "noop"

        resp = client.delete_metafield(shop, access_token, owner_id, current_id)
        # 远端已经不存在也算删除成功
        if is_error_response(resp) and not _is_not_found(resp):
            raise RemoteRejection(f"delete {routine.key} failed: {error_message(resp)}", resp)
        variant_repo.update_product(db, product, **{routine.id_attr: None})
        db.commit()
        events.emit("metafield.delete", routine=routine.name, key=routine.key, metafield_id=current_id)
        return "delete"

    body: Dict[str, Any] = {
        "namespace": settings.METAFIELD_NAMESPACE,
        "key": routine.key,
        "value": routine.value(product, base_price),
        "type": settings.METAFIELD_TYPE,
    }

    if current_id is None:
        resp = client.create_metafield(shop, access_token, owner_id, body)
        if is_error_response(resp):
            raise RemoteRejection(f"create {routine.key} failed: {error_message(resp)}", resp)
        new_id = metafield_id(resp)
        if new_id is None:
            # 必须拿到 id，否则下一轮会重复创建
            raise RemoteRejection(f"create {routine.key} returned no metafield id", resp)
        variant_repo.update_product(db, product, **{routine.id_attr: new_id})
        db.commit()
        events.emit("metafield.create", routine=routine.name, key=routine.key,
                    metafield_id=new_id, value=body["value"])
        return "create"

    resp = client.update_metafield(shop, access_token, owner_id, {"id": current_id, **body})
    if is_error_response(resp):
        raise RemoteRejection(f"update {routine.key} failed: {error_message(resp)}", resp)
    events.emit("metafield.update", routine=routine.name, key=routine.key,
                metafield_id=current_id, value=body["value"])
    return "update"



def reconcile_metafields(
    db: Session,
    client,
    *,
    shop: str,
    access_token: Any,
    product,
    base_price: Any,
    events: Optional[EventLogger] = None,
) -> MetafieldReport:
    """
    三个 routine 依次跑，一个失败不影响其它两个；失败收集在 report.failures 里由调用方决定怎么记录。
    变体商品还没建出来（variant_shopify_product_id 为空）时全部跳过。
    """
    events = (events or EventLogger()).bind(
        shop=shop, product_id=product.base_shopify_product_id,
    )
    report = MetafieldReport()

    if product.variant_shopify_product_id is None:
        for routine in ROUTINES:
            report.actions[routine.name] = "skipped"
        events.emit("metafield.skipped", reason="variant product not created yet")
        return report

    for routine in ROUTINES:
        try:
            report.actions[routine.name] = reconcile_one(
                db, client, routine,
                shop=shop, access_token=access_token,
                product=product, base_price=base_price, events=events,
            )
        except Exception as e:
            db.rollback()
            logger.exception("metafield.%s failed shop=%s product=%s", routine.name, shop,
                             product.base_shopify_product_id)
            report.actions[routine.name] = "failed"
            report.failures.append(f"{routine.key}: {e}")
            events.emit("metafield.failed", level=logging.WARNING,
                        routine=routine.name, key=routine.key, error=str(e))

    return report
