# 变体配置相关接口 -> 前端商品变体编辑页调用
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.integrations.shopify.shopify_client import ShopifyClient
from app.orchestration.variant_sync.save_configuration import get_variant_configuration, save_variant_configuration
from app.services.variants.config import option_previews
from app.services.variants.errors import VariantValidationError
from app.services.variants.modifiers import parse_money


router = APIRouter(prefix="/variants", tags=["variants"])


def get_shopify_client() -> ShopifyClient:
    return ShopifyClient()


class VariantOptionIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    label: str = ""
    modifier_value: Optional[Union[int, float, str]] = Field(default=None, alias="modifierValue")


class VariantGroupIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    name: str = ""
    modifier_kind: str = Field(default="NONE", alias="modifierKind")
    options: List[VariantOptionIn] = Field(default_factory=list)


class VariantConfigIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    shop: str
    base_product_id: int = Field(alias="baseProductId")
    sell_by_weight: bool = Field(default=False, alias="sellByWeight")
    weight_unit: str = Field(default="lb", alias="weightUnit")
    price_label: bool = Field(default=False, alias="priceLabel")
    additional_label: Optional[str] = Field(default=None, alias="additionalLabel")
    variant_groups: List[VariantGroupIn] = Field(default_factory=list, alias="variantGroups")


class SaveResult(BaseModel):
    error: bool
    message: str = ""



@router.get("/{product_id}")
def read_configuration(
    product_id: int = Path(..., description="商家原始商品的 Shopify id"),
    shop: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """未配置过的商品返回默认值"""
    config = get_variant_configuration(db, shop, product_id)
    return {"productId": product_id, **config.to_payload()}


'''
  Save 按钮：校验 -> 写库 -> 同步 Shopify
  成功失败都回 200，前端按 error 显示横幅
'''
@router.post("", response_model=SaveResult)
def save_configuration(
    body: VariantConfigIn,
    db: Session = Depends(get_db),
    client: ShopifyClient = Depends(get_shopify_client),
) -> SaveResult:
    payload = body.model_dump(by_alias=True, exclude={"shop", "base_product_id"})
    result = save_variant_configuration(
        db, client,
        shop=body.shop,
        product_id=body.base_product_id,
        config=payload,
    )
    return SaveResult(**result)


@router.get("/{product_id}/preview")
def preview_prices(
    product_id: int,
    shop: str = Query(..., min_length=1),
    price: str = Query(..., description="基础价（每 lb）"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        base = parse_money(price, field="price")
        config = get_variant_configuration(db, shop, product_id)
        groups = option_previews(config, base)
    except VariantValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {"productId": product_id, "price": str(base), "variantGroups": groups}
