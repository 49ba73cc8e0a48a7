from __future__ import annotations
from typing import Iterable, List, Sequence, TypeVar

from app.services.variants.errors import VariantValidationError
from app.services.variants.modifiers import ModifierKind


G = TypeVar("G")

# 槽位优先级：WEIGHT 必须在 slot 1（乘法先于加法），FEE 在 NONE 前
_RANK = {
    ModifierKind.WEIGHT: 0,
    ModifierKind.FEE: 1,
    ModifierKind.NONE: 2,
}


def group_kind(group) -> ModifierKind:
    return ModifierKind.parse(getattr(group, "modifier_kind", None))


def ensure_single_weight_group(groups: Iterable) -> None:
    weight_count = sum(1 for g in groups if group_kind(g) is ModifierKind.WEIGHT)
    if weight_count > 1:
        raise VariantValidationError(
            f"Only one WEIGHT variant group is allowed per product, got {weight_count}"
        )


def sort_variant_groups(groups: Sequence[G]) -> List[G]:
    """
    WEIGHT 在前，FEE 在 NONE 前，同级保持输入顺序。
    sorted() 是稳定排序，组合的槽位分配依赖最终顺序，不能换成不稳定的实现。
    返回新列表，不修改入参。
    """
    groups = list(groups)
    ensure_single_weight_group(groups)
    return sorted(groups, key=lambda g: _RANK[group_kind(g)])
