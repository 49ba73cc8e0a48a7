import dataclasses
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.services.variants.errors import VariantValidationError
from app.services.variants.expander import (
    DEFAULT_VARIANT_TITLE, build_option_descriptors, expand_variants, iter_combinations, validate_groups,
)


def _opt(label, value=None, id=None):
    return SimpleNamespace(label=label, modifier_value=value, id=id)


def _group(name, kind, options):
    return SimpleNamespace(name=name, modifier_kind=kind, options=options)


def test_variant_count_is_product_of_option_counts():
    groups = [
        _group("Size", "WEIGHT", [_opt("4oz", 4), _opt("8oz", 8), _opt("16oz", 16)]),
        _group("Gift", "FEE", [_opt("No", 0), _opt("Yes", 2)]),
        _group("Grind", "NONE", [_opt("Whole"), _opt("Ground")]),
    ]
    drafts = expand_variants(groups, "10.00")
    assert len(drafts) == 12
    assert [d.position for d in drafts] == list(range(1, 13))


def test_first_slot_varies_fastest():
    groups = [
        _group("Size", "NONE", [_opt("a"), _opt("b")]),
        _group("Color", "NONE", [_opt("x"), _opt("y")]),
    ]
    drafts = expand_variants(groups, "10.00")
    assert [d.title for d in drafts] == ["a / x", "b / x", "a / y", "b / y"]
    assert [(d.option1, d.option2, d.option3) for d in drafts][0] == ("a", "x", None)


def test_iter_combinations_order():
    combos = list(iter_combinations([[1, 2], ["a", "b"], ["X"]]))
    assert combos == [(1, "a", "X"), (2, "a", "X"), (1, "b", "X"), (2, "b", "X")]


def test_weight_then_fee_price():
    # 10 * 8/16 + 2 = 7.00
    groups = [
        _group("Size", "WEIGHT", [_opt("8oz", 8, id=11)]),
        _group("Gift", "FEE", [_opt("Wrapped", "2", id=21)]),
    ]
    (draft,) = expand_variants(groups, Decimal("10.00"), taxable=False, shopify_product_id=1001)

    assert draft.rounded_price == Decimal("7.00")
    assert draft.to_multiply == Decimal("0.5")
    assert draft.to_add == Decimal("2.00")
    assert draft.weight == Decimal(8)
    assert draft.weight_unit == "oz"
    assert draft.taxable is False
    assert draft.shopify_product_id == 1001
    assert (draft.option1_variant, draft.option2_variant, draft.option3_variant) == (11, 21, None)
    assert draft.inventory_policy == "continue"


def test_weight_only_price():
    (draft,) = expand_variants([_group("Size", "WEIGHT", [_opt("8oz", 8)])], "10.00")
    assert draft.rounded_price == Decimal("5.00")


def test_zero_groups_gives_default_variant():
    (draft,) = expand_variants([], "10.00", shopify_product_id=1001)

    assert draft.title == DEFAULT_VARIANT_TITLE
    assert draft.rounded_price == Decimal("10.00")
    assert draft.option1 is None
    assert draft.to_multiply == Decimal(1)
    assert draft.to_add == Decimal(0)


def test_groups_without_options_give_default_variant():
    (draft,) = expand_variants([_group("Size", "WEIGHT", [])], "9.99")
    assert draft.title == DEFAULT_VARIANT_TITLE
    assert draft.rounded_price == Decimal("9.99")


def test_non_contiguous_slots_are_rejected():
    groups = [
        _group("Empty", "NONE", []),
        _group("Color", "NONE", [_opt("Red")]),
    ]
    with pytest.raises(VariantValidationError):
        expand_variants(groups, "10.00")


def test_more_than_three_groups_rejected():
    groups = [_group(f"g{i}", "NONE", [_opt("x")]) for i in range(4)]
    with pytest.raises(VariantValidationError):
        expand_variants(groups, "10.00")


def test_weight_in_second_slot_rejected():
    # 这里不排序：调用方负责先 sort_variant_groups
    groups = [
        _group("Gift", "FEE", [_opt("Yes", 2)]),
        _group("Size", "WEIGHT", [_opt("8oz", 8)]),
    ]
    with pytest.raises(VariantValidationError):
        validate_groups(groups)
    with pytest.raises(VariantValidationError):
        expand_variants(groups, "10.00")


def test_option_descriptors_follow_slot_order():
    groups = [
        _group("Size", "WEIGHT", [_opt("8oz", 8), _opt("16oz", 16)]),
        _group("Grind", "NONE", [_opt("Whole")]),
    ]
    assert build_option_descriptors(groups) == [
        {"name": "Size", "position": 1, "values": ["8oz", "16oz"]},
        {"name": "Grind", "position": 2, "values": ["Whole"]},
    ]


def test_drafts_are_immutable():
    (draft,) = expand_variants([], "10.00")
    with pytest.raises(dataclasses.FrozenInstanceError):
        draft.price = Decimal("1")

    mapped = draft.with_remote_ids(9001, 3)
    assert mapped.shopify_variant_id == 9001
    assert mapped.position == 3
    assert draft.shopify_variant_id is None
