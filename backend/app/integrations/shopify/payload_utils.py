from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from app.integrations.shopify.errors import ShopifyPayloadError


def is_error_response(resp: Any) -> bool:
    """Shopify 4xx 被 client 收敛成 {"errors": ...}"""
    return isinstance(resp, dict) and bool(resp.get("errors"))


def error_message(resp: Any) -> str:
    errors = resp.get("errors") if isinstance(resp, dict) else resp
    if isinstance(errors, str):
        return errors
    try:
        return json.dumps(errors, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(errors)


def normalize_shopify_price(value: Any) -> Decimal | None:
    """
    将 Shopify 变体上的 price（字符串）转换为 Decimal，失败则返回 None。
    """
    if value is None:
        return None
    try:
        return Decimal(str(value)).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError, TypeError):
        return None


def _money_str(value: Any) -> str:
    return f"{Decimal(str(value)).quantize(Decimal('0.01'))}"


def root_variant_fields(resp: Dict[str, Any]) -> Tuple[Decimal, bool, Optional[str]]:
    """
    商家原始商品：取 variants[0] 的 price / taxable（以远端为准），以及 title。
    """
    product = (resp or {}).get("product") or {}
    variants = product.get("variants") or []
    if not variants:
        raise ShopifyPayloadError(f"product {product.get('id')} has no variants")

    root = variants[0] or {}
    price = normalize_shopify_price(root.get("price"))
    if price is None:
        raise ShopifyPayloadError(f"product {product.get('id')} root variant has no valid price: {root.get('price')!r}")
    taxable = bool(root.get("taxable", True))
    return price, taxable, product.get("title")


def variant_payload(draft) -> Dict[str, Any]:
    """VariantDraft -> REST variant 对象；价格在这里四舍五入到分"""
    body: Dict[str, Any] = {
        "price": _money_str(draft.rounded_price),
        "taxable": bool(draft.taxable),
        "inventory_policy": draft.inventory_policy,
    }
    labels = [label for label in (draft.option1, draft.option2, draft.option3) if label is not None]
    if labels:
        for idx, label in enumerate(labels, start=1):
            body[f"option{idx}"] = label
    else:
        body["title"] = draft.title
    if draft.weight is not None:
        body["weight"] = float(draft.weight)
        body["weight_unit"] = draft.weight_unit
    return body


def remote_variants(resp: Dict[str, Any]) -> List[Dict[str, Any]]:
    """update/create product 的返回里按顺序取 [{id, position}]"""
    product = (resp or {}).get("product") or {}
    out: List[Dict[str, Any]] = []
    for v in product.get("variants") or []:
        if not isinstance(v, dict) or v.get("id") is None:
            continue
        out.append({"id": int(v["id"]), "position": v.get("position")})
    return out


def remote_product_id(resp: Dict[str, Any]) -> Optional[int]:
    product = (resp or {}).get("product") or {}
    pid = product.get("id")
    return int(pid) if pid is not None else None


def metafield_id(resp: Dict[str, Any]) -> Optional[int]:
    mf = (resp or {}).get("metafield") or {}
    mid = mf.get("id")
    return int(mid) if mid is not None else None


def price_string(base_price: Any, unit: str) -> str:
    """SellByWeightPriceString 的值，如 "$12.50 lb" """
    return f"${_money_str(base_price)} {unit}"
