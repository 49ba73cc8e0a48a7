from decimal import Decimal

import pytest

from app.services.variants.config import (
    VariantConfiguration, VariantGroupConfig, VariantOptionConfig,
    collect_configuration_errors, option_previews, validate_configuration,
    with_group_added, with_group_removed, with_option_added, with_option_removed,
)
from app.services.variants.errors import VariantValidationError
from app.services.variants.modifiers import ModifierKind


PAYLOAD = {
    "sellByWeight": True,
    "weightUnit": "LB",
    "priceLabel": False,
    "additionalLabel": "  Roasted weekly ",
    "variantGroups": [
        {"name": "Size", "modifierKind": "WEIGHT", "options": [
            {"label": "8oz", "modifierValue": 8},
            {"label": "16oz", "modifierValue": "16"},
        ]},
        {"name": "Grind", "modifierKind": "NONE", "options": [
            {"label": "Whole", "modifierValue": "ignored"},
        ]},
    ],
}


def test_from_payload_normalizes_values():
    config = VariantConfiguration.from_payload(PAYLOAD)

    assert config.sell_by_weight is True
    assert config.weight_unit == "lb"
    assert config.additional_label == "Roasted weekly"
    size, grind = config.variant_groups
    assert size.modifier_kind is ModifierKind.WEIGHT
    assert [o.modifier_value for o in size.options] == [Decimal(8), Decimal(16)]
    # NONE 组不存数值
    assert grind.options[0].modifier_value is None
    assert collect_configuration_errors(config) == []


def test_to_payload_round_trip_keys():
    payload = VariantConfiguration.from_payload(PAYLOAD).to_payload()
    assert set(payload) == {"sellByWeight", "weightUnit", "priceLabel", "additionalLabel", "variantGroups"}
    assert payload["variantGroups"][0]["modifierKind"] == "WEIGHT"
    assert payload["variantGroups"][0]["options"][1]["modifierValue"] == "16"


def _group(name, kind, *options):
    return VariantGroupConfig(name=name, modifier_kind=kind, options=tuple(options))


def test_collects_every_rule_violation():
    config = VariantConfiguration(
        weight_unit="kg",
        additional_label="x" * 76,
        variant_groups=(
            _group("Gift", ModifierKind.FEE, VariantOptionConfig(label="Yes")),
            _group("Size", ModifierKind.WEIGHT, VariantOptionConfig(label="8oz", modifier_value=Decimal(8))),
            _group("", ModifierKind.NONE),
            _group("Extra", ModifierKind.NONE, VariantOptionConfig(label="a")),
        ),
    )
    errors = collect_configuration_errors(config)
    text = " | ".join(errors)

    assert "At most 3 variant groups" in text
    assert "WEIGHT variant group must be the first" in text
    assert "needs a name" in text
    assert "needs at least one option" in text
    assert "needs a modifier value" in text
    assert "weightUnit" in text
    assert "additionalLabel" in text

    with pytest.raises(VariantValidationError):
        validate_configuration(config)


def test_two_weight_groups_rejected():
    config = VariantConfiguration(variant_groups=(
        _group("Size", ModifierKind.WEIGHT, VariantOptionConfig(label="8oz", modifier_value=Decimal(8))),
        _group("Pack", ModifierKind.WEIGHT, VariantOptionConfig(label="2x", modifier_value=Decimal(2))),
    ))
    assert "Only one WEIGHT variant group is allowed" in collect_configuration_errors(config)


def test_bad_modifier_value_rejected_while_parsing():
    with pytest.raises(VariantValidationError):
        VariantConfiguration.from_payload({"variantGroups": [
            {"name": "Gift", "modifierKind": "FEE", "options": [{"label": "Yes", "modifierValue": "-3"}]},
        ]})


def test_update_helpers_return_new_values():
    base = VariantConfiguration()
    size = _group("Size", ModifierKind.WEIGHT)

    added = with_group_added(base, size)
    assert base.variant_groups == ()
    assert added.variant_groups == (size,)

    option = VariantOptionConfig(label="8oz", modifier_value=Decimal(8))
    grown = with_option_added(size, option)
    assert size.options == ()
    assert grown.options == (option,)
    assert with_option_removed(grown, 0).options == ()

    assert with_group_removed(added, 0).variant_groups == ()


def test_option_previews():
    config = VariantConfiguration.from_payload({"variantGroups": [
        {"name": "Size", "modifierKind": "WEIGHT", "options": [{"label": "8oz", "modifierValue": 8}]},
        {"name": "Gift", "modifierKind": "FEE", "options": [{"label": "Yes", "modifierValue": 2}]},
        {"name": "Grind", "modifierKind": "NONE", "options": [{"label": "Whole"}]},
    ]})

    groups = option_previews(config, Decimal("10.00"))

    assert groups[0]["options"][0]["preview"] == "5.00"
    assert groups[1]["options"][0]["preview"] == "2.00"
    assert groups[2]["options"][0]["preview"] is None
