# 变体组合展开：最多 3 组选项做笛卡尔积，并算出每个组合的价格

from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal
from itertools import product
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from app.services.variants.errors import VariantValidationError
from app.services.variants.modifiers import _to_decimal, apply_modifier, round_money
from app.services.variants.ordering import group_kind


MAX_SLOTS = 3                          # Shopify 一个商品最多 option1..option3
DEFAULT_VARIANT_TITLE = "Default Variant"
INVENTORY_POLICY = "continue"          # 不做库存，缺货也允许下单



# --------- 输出模型（不可变） ----------
@dataclass(frozen=True)
class VariantDraft:
    title: str
    price: Decimal                       # 未四舍五入，推送/落库时再 round
    to_multiply: Decimal = Decimal(1)
    to_add: Decimal = Decimal(0)
    option1: Optional[str] = None
    option2: Optional[str] = None
    option3: Optional[str] = None
    option1_variant: Optional[int] = None
    option2_variant: Optional[int] = None
    option3_variant: Optional[int] = None
    weight: Optional[Decimal] = None
    weight_unit: Optional[str] = None
    taxable: bool = True
    inventory_policy: str = INVENTORY_POLICY
    shopify_product_id: Optional[int] = None
    position: int = 1
    shopify_variant_id: Optional[int] = None

    @property
    def rounded_price(self) -> Decimal:
        return round_money(self.price)

    @property
    def labels(self) -> Tuple[Optional[str], ...]:
        return (self.option1, self.option2, self.option3)

    def with_remote_ids(self, shopify_variant_id: Any, position: Optional[int] = None) -> "VariantDraft":
        return replace(
            self,
            shopify_variant_id=int(shopify_variant_id) if shopify_variant_id is not None else None,
            position=int(position) if position is not None else self.position,
        )



# --------- 槽位处理 ----------
def _populated_groups(groups: Sequence) -> List:
    """
    有选项的组必须是连续前缀：slot1 空而 slot2 有值时 option 编号会错位，直接拒绝。
    """
    if len(groups) > MAX_SLOTS:
        raise VariantValidationError(f"Only {MAX_SLOTS} variant groups are allowed, got {len(groups)}")

    populated: List = []
    seen_empty = False
    for idx, g in enumerate(groups, start=1):
        options = list(getattr(g, "options", None) or [])
        if not options:
            seen_empty = True
            continue
        if seen_empty:
            raise VariantValidationError(
                f"Variant group {idx} ({getattr(g, 'name', '')!r}) has options but an earlier group is empty"
            )
        populated.append(g)
    return populated


def iter_combinations(option_lists: Sequence[Sequence]) -> Iterator[Tuple]:
    """
    N 元组合（N <= 3），slot3 最外层、slot1 最内层，即 option1 变化最快。
    这个顺序决定 Shopify 上变体的展示顺序，不能改。
    """
    if len(option_lists) > MAX_SLOTS:
        raise VariantValidationError(f"At most {MAX_SLOTS} option lists can be combined")
    for combo in product(*reversed(option_lists)):
        yield tuple(reversed(combo))



# --------- 单个变体构造（纯函数） ----------
def build_variant(
    combo: Sequence,
    kinds: Sequence,
    base_price: Decimal,
    *,
    position: int,
    taxable: bool,
    shopify_product_id: Optional[int],
) -> VariantDraft:
    multiplier = Decimal(1)
    to_add = Decimal(0)
    weight = None
    weight_unit = None

    for slot, (kind, option) in enumerate(zip(kinds, combo), start=1):
        effect = apply_modifier(kind, base_price, getattr(option, "modifier_value", None), slot=slot)
        multiplier *= effect.multiplier
        to_add += effect.price_delta
        if effect.weight is not None:
            weight, weight_unit = effect.weight, effect.weight_unit

    labels = [str(getattr(o, "label", "")) for o in combo]
    ids = [getattr(o, "id", None) for o in combo]
    labels += [None] * (MAX_SLOTS - len(labels))
    ids += [None] * (MAX_SLOTS - len(ids))

    return VariantDraft(
        title=" / ".join(label for label in labels if label is not None),
        price=base_price * multiplier + to_add,        # 先乘后加：base * m + Σfee
        to_multiply=multiplier,
        to_add=to_add,
        option1=labels[0], option2=labels[1], option3=labels[2],
        option1_variant=ids[0], option2_variant=ids[1], option3_variant=ids[2],
        weight=weight,
        weight_unit=weight_unit,
        taxable=taxable,
        shopify_product_id=shopify_product_id,
        position=position,
    )


def build_default_variant(base_price: Decimal, *, taxable: bool, shopify_product_id: Optional[int]) -> VariantDraft:
    return VariantDraft(
        title=DEFAULT_VARIANT_TITLE,
        price=base_price,
        taxable=taxable,
        shopify_product_id=shopify_product_id,
        position=1,
    )



"""
入口：expand_variants(groups, base_price)
    1) groups 已经过 sort_variant_groups 排序，这里不再排
    2) 取有选项的组（连续前缀，最多 3 组）
    3) 0 组 -> 单个 "Default Variant"（原价）；否则按组合逐个构造
    输出条数 = 各组选项数之积
"""
def expand_variants(
    groups: Sequence,
    base_price: Any,
    *,
    taxable: bool = True,
    shopify_product_id: Optional[int] = None,
) -> Tuple[VariantDraft, ...]:

    base = _to_decimal(base_price, field="price")
    populated = _populated_groups(groups)

    if not populated:
        return (build_default_variant(base, taxable=taxable, shopify_product_id=shopify_product_id),)

    kinds = [group_kind(g) for g in populated]
    option_lists = [list(g.options) for g in populated]

    return tuple(
        build_variant(
            combo, kinds, base,
            position=idx,
            taxable=taxable,
            shopify_product_id=shopify_product_id,
        )
        for idx, combo in enumerate(iter_combinations(option_lists), start=1)
    )


def build_option_descriptors(groups: Sequence) -> List[dict]:
    """Shopify product.options：每组一个 {name, position, values}，顺序与展开时一致"""
    return [
        {
            "name": g.name,
            "position": idx,
            "values": [str(o.label) for o in g.options],
        }
        for idx, g in enumerate(_populated_groups(groups), start=1)
    ]


def validate_groups(groups: Sequence) -> None:
    """远端调用之前先把每个选项按所在槽位过一遍规则，提前暴露配置错误"""
    for slot, g in enumerate(_populated_groups(groups), start=1):
        kind = group_kind(g)
        for o in g.options:
            apply_modifier(kind, Decimal(0), getattr(o, "modifier_value", None), slot=slot)
