from app.orchestration.variant_sync.save_configuration import get_variant_configuration, save_variant_configuration
from app.repository import access_repo, variant_repo
from app.services.variants.config import VariantConfiguration

from conftest import BASE_ID, SHOP, TOKEN, VARIANT_PRODUCT_ID


CONFIG = {
    "sellByWeight": False,
    "weightUnit": "lb",
    "priceLabel": False,
    "additionalLabel": None,
    "variantGroups": [
        # 故意把 NONE 放在前面：sync 时会按 WEIGHT > FEE > NONE 排序
        {"name": "Grind", "modifierKind": "NONE", "options": [{"label": "Whole"}, {"label": "Ground"}]},
    ],
}


def _save(db, client, config, events, lock):
    return save_variant_configuration(db, client, shop=SHOP, product_id=BASE_ID, config=config,
                                      events=events, lock=lock)


def test_invalid_configuration_writes_nothing(db, fake_client, events, lock):
    bad = {"variantGroups": [
        {"name": "Gift", "modifierKind": "FEE", "options": [{"label": "Yes"}]},
    ]}

    result = _save(db, fake_client, bad, events, lock)

    assert result["error"] is True
    assert "needs a modifier value" in result["message"]
    assert variant_repo.get_product_by_base_id(db, SHOP, BASE_ID) is None
    assert fake_client.calls == []


def test_unparseable_value_is_reported(db, fake_client, events, lock):
    bad = {"variantGroups": [
        {"name": "Size", "modifierKind": "WEIGHT", "options": [{"label": "8oz", "modifierValue": "eight"}]},
    ]}

    result = _save(db, fake_client, bad, events, lock)

    assert result["error"] is True
    assert fake_client.calls == []


def test_out_of_range_value_is_reported(db, fake_client, events, lock):
    bad = {"variantGroups": [
        {"name": "Gift", "modifierKind": "FEE", "options": [{"label": "Wrap", "modifierValue": "1e30"}]},
    ]}

    result = _save(db, fake_client, bad, events, lock)

    assert result["error"] is True
    assert "out of range" in result["message"]
    assert variant_repo.get_product_by_base_id(db, SHOP, BASE_ID) is None
    assert fake_client.calls == []


def test_unexpected_parse_error_is_reported(db, fake_client, events, lock):
    # options 不是对象列表
    bad = {"variantGroups": [{"name": "Gift", "modifierKind": "FEE", "options": ["Wrap"]}]}

    result = _save(db, fake_client, bad, events, lock)

    assert result["error"] is True
    assert result["message"].startswith("Invalid variant configuration")
    assert fake_client.calls == []


def test_save_persists_groups_and_runs_sync(db, fake_client, events, lock):
    access_repo.upsert_access_credential(db, SHOP, TOKEN)

    result = _save(db, fake_client, CONFIG, events, lock)

    assert result == {"error": False, "message": ""}
    product = variant_repo.get_product_with_variant_groups(db, SHOP, BASE_ID)
    assert product.variant_shopify_product_id == VARIANT_PRODUCT_ID
    assert [g.name for g in product.variant_groups] == ["Grind"]
    assert [o.label for o in product.variant_groups[0].options] == ["Whole", "Ground"]
    assert len(fake_client.calls_to("create_product")) == 1
    assert len(variant_repo.get_all_synthesized_variants(db, BASE_ID)) == 2


def test_resave_replaces_groups(db, fake_client, events, lock):
    access_repo.upsert_access_credential(db, SHOP, TOKEN)
    _save(db, fake_client, CONFIG, events, lock)

    second = {
        "sellByWeight": True,
        "weightUnit": "oz",
        "variantGroups": [
            {"name": "Size", "modifierKind": "WEIGHT", "options": [
                {"label": "4oz", "modifierValue": 4}, {"label": "8oz", "modifierValue": 8},
                {"label": "16oz", "modifierValue": 16},
            ]},
        ],
    }
    result = _save(db, fake_client, second, events, lock)

    assert result["error"] is False
    config = get_variant_configuration(db, SHOP, BASE_ID)
    assert config.sell_by_weight is True
    assert config.weight_unit == "oz"
    assert [g.name for g in config.variant_groups] == ["Size"]
    assert [o.label for o in config.variant_groups[0].options] == ["4oz", "8oz", "16oz"]
    # 第二次走 update_product
    assert len(fake_client.calls_to("update_product")) == 1
    assert len(variant_repo.get_all_synthesized_variants(db, BASE_ID)) == 3
    (_, _, _, field), = fake_client.calls_to("create_metafield")
    assert field["value"] == "$10.00 oz"


def test_sync_failure_is_returned_to_caller(db, fake_client, events, lock):
    access_repo.upsert_access_credential(db, SHOP, TOKEN)
    fake_client.overrides["create_product"] = {"errors": {"title": ["can't be blank"]}}

    result = _save(db, fake_client, CONFIG, events, lock)

    assert result["error"] is True
    assert "can't be blank" in result["message"]
    # 配置本身已经保存
    assert get_variant_configuration(db, SHOP, BASE_ID).variant_groups[0].name == "Grind"


def test_unknown_product_returns_defaults(db):
    assert get_variant_configuration(db, SHOP, 999) == VariantConfiguration()
