from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from sqlalchemy.orm import Session

from app.core.events import EventLogger
from app.orchestration.variant_sync.locks import product_lock
from app.orchestration.variant_sync.sync_reconciler import run_sync
from app.repository import variant_repo
from app.services.variants.config import VariantConfiguration, validate_configuration
from app.services.variants.errors import VariantSyncError


logger = logging.getLogger(__name__)


def _replace_groups(db: Session, product, config: VariantConfiguration) -> None:
    """组/选项全量替换：先删旧的，再按表单顺序重建（position 从 1 开始）"""
    for group in list(product.variant_groups):
        for option in list(group.options):
            variant_repo.delete_variant(db, option)
        variant_repo.delete_variant_group(db, group)

    for gi, g in enumerate(config.variant_groups, start=1):
        group = variant_repo.create_variant_group(
            db, product, name=g.name, modifier_kind=g.modifier_kind.value, position=gi,
        )
        for oi, o in enumerate(g.options, start=1):
            variant_repo.create_variant(
                db, group, label=o.label, modifier_value=o.modifier_value, position=oi,
            )



"""
保存动作（前端 Save 按钮）：
    1) 解析 + 规则检查，不通过直接返回 {error: true}，不写库也不调远端
    2) 拿商品锁；get-or-create Product，替换组/选项，写入开关字段，commit
    3) 同一把锁下跑一次完整 sync，结果原样返回给前端横幅
"""
def save_variant_configuration(
    db: Session,
    client,
    *,
    shop: str,
    product_id: int,
    config: Union[VariantConfiguration, Dict[str, Any]],
    access_token: Optional[str] = None,
    events: Optional[EventLogger] = None,
    lock=None,
) -> Dict[str, Any]:

    try:
        if not isinstance(config, VariantConfiguration):
            config = VariantConfiguration.from_payload(config)
        validate_configuration(config)
    except VariantSyncError as e:
        logger.info("variant_config.rejected shop=%s product=%s err=%s", shop, product_id, e)
        return {"error": True, "message": str(e)}
    except Exception as e:
        logger.exception("variant_config.parse_failed shop=%s product=%s", shop, product_id)
        return {"error": True, "message": f"Invalid variant configuration: {e!r}"}

    try:
        with product_lock(shop, product_id, lock):
            product = variant_repo.get_or_create_product(db, shop, product_id)
            _replace_groups(db, product, config)
            variant_repo.update_product(
                db, product,
                sell_by_weight=config.sell_by_weight,
                weight_unit=config.weight_unit,
                price_label=config.price_label,
                additional_label=config.additional_label,
            )
            db.commit()
            logger.info("variant_config.saved shop=%s product=%s groups=%s",
                        shop, product_id, len(config.variant_groups))

            result = run_sync(db, client, shop=shop, product_id=product_id,
                              access_token=access_token, events=events)
            return result.as_response()

    except VariantSyncError as e:
        db.rollback()
        logger.warning("variant_config.save_failed shop=%s product=%s err=%s", shop, product_id, e)
        return {"error": True, "message": str(e)}
    except Exception as e:
        db.rollback()
        logger.exception("variant_config.save_failed shop=%s product=%s", shop, product_id)
        return {"error": True, "message": str(e)}



def get_variant_configuration(db: Session, shop: str, product_id: int) -> VariantConfiguration:
    """未配置过的商品返回默认值（sellByWeight=False, weightUnit=lb, 无分组）"""
    product = variant_repo.get_product_with_variant_groups(db, shop, product_id)
    if product is None:
        return VariantConfiguration()
    return VariantConfiguration.from_product(product)
