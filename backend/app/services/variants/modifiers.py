# 变体价格规则：一个选项对价格的贡献（纯函数）

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Optional

from app.services.variants.errors import VariantValidationError


OUNCES_PER_POUND = Decimal(16)     # WEIGHT 的值按 oz 填，基础价按 lb 计价
WEIGHT_UNIT_OZ = "oz"
_Q_CENTS = Decimal("0.01")
_ONE = Decimal(1)
_ZERO = Decimal(0)


class ModifierKind(str, Enum):
    WEIGHT = "WEIGHT"    # 乘法：base * oz / 16
    FEE = "FEE"          # 加法：固定加价
    NONE = "NONE"        # 只做标签区分，不影响价格

    @classmethod
    def parse(cls, value: Any) -> "ModifierKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().upper())
        except ValueError:
            raise VariantValidationError(f"Unknown modifier kind: {value!r}") from None



@dataclass(frozen=True)
class ModifierEffect:
    price_delta: Decimal = _ZERO
    multiplier: Decimal = _ONE
    weight: Optional[Decimal] = None
    weight_unit: Optional[str] = None

    def applied_to(self, base_unit_price: Decimal) -> Decimal:
        return base_unit_price * self.multiplier + self.price_delta



# --------- 数值工具 ----------
def _to_decimal(value: Any, *, field: str) -> Decimal:
    if isinstance(value, Decimal):
        d = value
    elif value is None or (isinstance(value, str) and not value.strip()):
        raise VariantValidationError(f"{field} is required")
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError):
            raise VariantValidationError(f"{field} must be a number, got {value!r}") from None
    if not d.is_finite():
        raise VariantValidationError(f"{field} must be a finite number, got {value!r}")
    return d


def _quantize_cents(d: Decimal, *, field: str) -> Decimal:
    # 超出 decimal 精度的值（如 "1e30"）quantize 会抛 InvalidOperation
    try:
        return d.quantize(_Q_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise VariantValidationError(f"{field} is out of range, got {d}") from None


def round_money(value: Any) -> Decimal:
    """展示 / 预览 / 推送 Shopify 前统一四舍五入到分（ROUND_HALF_UP）"""
    return _quantize_cents(_to_decimal(value, field="amount"), field="amount")


def parse_money(value: Any, *, field: str = "modifierValue") -> Decimal:
    """解析商家填的金额，"2" -> 2.00；负数/非数字直接拒绝"""
    d = _to_decimal(value, field=field)
    if d < 0:
        raise VariantValidationError(f"{field} must not be negative, got {value!r}")
    return _quantize_cents(d, field=field)


def parse_weight(value: Any, *, field: str = "modifierValue") -> Decimal:
    d = _to_decimal(value, field=field)
    if d <= 0:
        raise VariantValidationError(f"{field} must be a positive weight in oz, got {value!r}")
    return d



"""
  apply_modifier(kind, base, value) -> ModifierEffect
    - WEIGHT: multiplier = value / 16，记录 weight=value、weight_unit=oz；只允许出现在第 1 个槽位
    - FEE:    price_delta = value（按金额解析），可叠加
    - NONE:   不影响价格
  不在这里做四舍五入，组合累加完再统一处理。
"""
def apply_modifier(
    kind: ModifierKind | str,
    base_unit_price: Decimal,
    modifier_value: Any,
    *,
    slot: int = 1,
) -> ModifierEffect:
    kind = ModifierKind.parse(kind)

    if kind is ModifierKind.NONE:
        return ModifierEffect()

    if kind is ModifierKind.WEIGHT:
        if slot != 1:
            raise VariantValidationError(
                f"WEIGHT modifier is only allowed in option slot 1, got slot {slot}"
            )
        ounces = parse_weight(modifier_value)
        return ModifierEffect(
            multiplier=ounces / OUNCES_PER_POUND,
            weight=ounces,
            weight_unit=WEIGHT_UNIT_OZ,
        )

    return ModifierEffect(price_delta=parse_money(modifier_value))


def preview_option_price(kind: ModifierKind | str, base_unit_price: Any, modifier_value: Any) -> Optional[Decimal]:
    """
    表单上的单项预览：
      WEIGHT -> 这个重量的售价（base * oz / 16）
      FEE    -> 加价金额
      NONE   -> None
    """
    kind = ModifierKind.parse(kind)
    if kind is ModifierKind.NONE:
        return None
    base = _to_decimal(base_unit_price, field="price")
    effect = apply_modifier(kind, base, modifier_value)
    if kind is ModifierKind.WEIGHT:
        return round_money(effect.applied_to(base))
    return round_money(effect.price_delta)
