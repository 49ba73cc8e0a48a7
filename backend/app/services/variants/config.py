# 变体配置值对象（前端表单 <-> 保存动作），全部不可变，修改走纯函数返回新值

from __future__ import annotations
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from app.core.config import settings
from app.services.variants.errors import VariantValidationError
from app.services.variants.modifiers import ModifierKind, parse_money, parse_weight, preview_option_price


WEIGHT_UNITS = ("lb", "oz")



@dataclass(frozen=True)
class VariantOptionConfig:
    label: str
    modifier_value: Optional[Decimal] = None      # NONE 组为 None
    id: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "modifierValue": str(self.modifier_value) if self.modifier_value is not None else None,
        }


@dataclass(frozen=True)
class VariantGroupConfig:
    name: str
    modifier_kind: ModifierKind = ModifierKind.NONE
    options: Tuple[VariantOptionConfig, ...] = ()
    id: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "modifierKind": self.modifier_kind.value,
            "options": [o.to_payload() for o in self.options],
        }


@dataclass(frozen=True)
class VariantConfiguration:
    sell_by_weight: bool = False
    weight_unit: str = "lb"
    price_label: bool = False
    additional_label: Optional[str] = None
    variant_groups: Tuple[VariantGroupConfig, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "VariantConfiguration":
        """
        前端 JSON -> 配置值：
          {sellByWeight, weightUnit, priceLabel, additionalLabel,
           variantGroups: [{name, modifierKind, options: [{label, modifierValue}]}]}
        只做类型整理，业务规则在 validate_configuration 里检查
        """
        if not isinstance(payload, dict):
            raise VariantValidationError("configuration payload must be an object")

        groups = []
        for g in payload.get("variantGroups") or []:
            kind = ModifierKind.parse(g.get("modifierKind") or ModifierKind.NONE)
            options = tuple(
                VariantOptionConfig(
                    label=str(o.get("label") or "").strip(),
                    modifier_value=_parse_option_value(kind, o.get("modifierValue")),
                    id=_opt_int(o.get("id")),
                )
                for o in (g.get("options") or [])
            )
            groups.append(VariantGroupConfig(
                name=str(g.get("name") or "").strip(),
                modifier_kind=kind,
                options=options,
                id=_opt_int(g.get("id")),
            ))

        label = payload.get("additionalLabel")
        label = str(label).strip() if label is not None else None

        return cls(
            sell_by_weight=bool(payload.get("sellByWeight", False)),
            weight_unit=str(payload.get("weightUnit") or "lb").strip().lower(),
            price_label=bool(payload.get("priceLabel", False)),
            additional_label=label or None,
            variant_groups=tuple(groups),
        )

    @classmethod
    def from_product(cls, product) -> "VariantConfiguration":
        """ORM Product -> 配置值（GET /variants 回显用）"""
        groups = tuple(
            VariantGroupConfig(
                name=g.name,
                modifier_kind=ModifierKind.parse(g.modifier_kind),
                options=tuple(
                    VariantOptionConfig(label=o.label, modifier_value=o.modifier_value, id=o.id)
                    for o in g.options
                ),
                id=g.id,
            )
            for g in product.variant_groups
        )
        return cls(
            sell_by_weight=bool(product.sell_by_weight),
            weight_unit=product.weight_unit or "lb",
            price_label=bool(product.price_label),
            additional_label=product.additional_label,
            variant_groups=groups,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "sellByWeight": self.sell_by_weight,
            "weightUnit": self.weight_unit,
            "priceLabel": self.price_label,
            "additionalLabel": self.additional_label,
            "variantGroups": [g.to_payload() for g in self.variant_groups],
        }



# --------- 解析工具 ----------
def _opt_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_option_value(kind: ModifierKind, value: Any) -> Optional[Decimal]:
    if kind is ModifierKind.NONE:
        return None
    if value is None or (isinstance(value, str) and not value.strip()):
        return None      # 缺值留给 validate_configuration 报错，带上组名/选项名
    if kind is ModifierKind.WEIGHT:
        return parse_weight(value)
    return parse_money(value)



# --------- 纯更新函数：都返回新对象 ----------
def with_group_added(config: VariantConfiguration, group: VariantGroupConfig) -> VariantConfiguration:
    return replace(config, variant_groups=config.variant_groups + (group,))


def with_group_removed(config: VariantConfiguration, index: int) -> VariantConfiguration:
    groups = list(config.variant_groups)
    del groups[index]
    return replace(config, variant_groups=tuple(groups))


def with_group_replaced(config: VariantConfiguration, index: int, group: VariantGroupConfig) -> VariantConfiguration:
    groups = list(config.variant_groups)
    groups[index] = group
    return replace(config, variant_groups=tuple(groups))


def with_option_added(group: VariantGroupConfig, option: VariantOptionConfig) -> VariantGroupConfig:
    return replace(group, options=group.options + (option,))


def with_option_removed(group: VariantGroupConfig, index: int) -> VariantGroupConfig:
    options = list(group.options)
    del options[index]
    return replace(group, options=tuple(options))



"""
  保存前的规则检查（任何远端调用之前）：
    - 最多 3 组，WEIGHT 最多 1 组且只能是第 1 组（前端只在第 1 组提供 WEIGHT）
    - 每组 1..10 个选项，组名/选项名非空
    - 非 NONE 组的选项必须填 modifierValue
    - weightUnit ∈ {lb, oz}，副标题 <= 75 字符
  返回全部错误信息列表，空列表 = 通过
"""
def collect_configuration_errors(config: VariantConfiguration) -> List[str]:
    errors: List[str] = []
    groups = config.variant_groups

    if len(groups) > settings.VARIANT_MAX_GROUPS:
        errors.append(f"At most {settings.VARIANT_MAX_GROUPS} variant groups are allowed")

    weight_idx = [i for i, g in enumerate(groups) if g.modifier_kind is ModifierKind.WEIGHT]
    if len(weight_idx) > 1:
        errors.append("Only one WEIGHT variant group is allowed")
    elif weight_idx and weight_idx[0] != 0:
        errors.append("The WEIGHT variant group must be the first group")

    for gi, g in enumerate(groups, start=1):
        if not g.name:
            errors.append(f"Variant group {gi} needs a name")
        if not g.options:
            errors.append(f"Variant group {g.name or gi} needs at least one option")
        elif len(g.options) > settings.VARIANT_MAX_OPTIONS:
            errors.append(f"Variant group {g.name or gi} has more than {settings.VARIANT_MAX_OPTIONS} options")
        for oi, o in enumerate(g.options, start=1):
            if not o.label:
                errors.append(f"Option {oi} of {g.name or gi} needs a label")
            if g.modifier_kind is not ModifierKind.NONE and o.modifier_value is None:
                errors.append(f"Option {o.label or oi} of {g.name or gi} needs a modifier value")

    if config.weight_unit not in WEIGHT_UNITS:
        errors.append(f"weightUnit must be one of {', '.join(WEIGHT_UNITS)}")

    if config.additional_label and len(config.additional_label) > settings.ADDITIONAL_LABEL_MAX_LEN:
        errors.append(f"additionalLabel must be at most {settings.ADDITIONAL_LABEL_MAX_LEN} characters")

    return errors


def validate_configuration(config: VariantConfiguration) -> VariantConfiguration:
    errors = collect_configuration_errors(config)
    if errors:
        raise VariantValidationError("; ".join(errors))
    return config


def option_previews(config: VariantConfiguration, base_price: Any) -> List[Dict[str, Any]]:
    """
    表单上每个选项旁边显示的价格：WEIGHT 为该重量的售价，FEE 为加价金额，NONE 为空
    """
    out: List[Dict[str, Any]] = []
    for g in config.variant_groups:
        options = []
        for o in g.options:
            preview = None
            if o.modifier_value is not None:
                preview = preview_option_price(g.modifier_kind, base_price, o.modifier_value)
            options.append({
                "label": o.label,
                "modifierValue": str(o.modifier_value) if o.modifier_value is not None else None,
                "preview": str(preview) if preview is not None else None,
            })
        out.append({"name": g.name, "modifierKind": g.modifier_kind.value, "options": options})
    return out
