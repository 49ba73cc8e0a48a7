from types import SimpleNamespace

import pytest

from app.services.variants.errors import VariantValidationError
from app.services.variants.ordering import sort_variant_groups


def _g(name, kind):
    return SimpleNamespace(name=name, modifier_kind=kind)


def test_weight_first_then_fee_then_none_stable():
    groups = [_g("Grind", "NONE"), _g("Gift wrap", "FEE"), _g("Size", "WEIGHT"), _g("Rush", "FEE")]

    ordered = sort_variant_groups(groups)

    assert [g.name for g in ordered] == ["Size", "Gift wrap", "Rush", "Grind"]


def test_sort_is_idempotent_and_does_not_mutate_input():
    groups = [_g("a", "NONE"), _g("b", "FEE"), _g("c", "WEIGHT")]
    snapshot = list(groups)

    once = sort_variant_groups(groups)
    twice = sort_variant_groups(once)

    assert [g.name for g in once] == [g.name for g in twice]
    assert groups == snapshot


def test_two_weight_groups_are_rejected():
    with pytest.raises(VariantValidationError):
        sort_variant_groups([_g("Size", "WEIGHT"), _g("Pack", "WEIGHT")])


def test_empty_list():
    assert sort_variant_groups([]) == []
