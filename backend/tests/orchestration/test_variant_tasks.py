from decimal import Decimal

from app.core.config import settings
from app.orchestration.variant_sync import tasks
from app.repository import status_repo, variant_repo
from app.services.variants.expander import VariantDraft

from conftest import BASE_ID, SHOP, VARIANT_PRODUCT_ID


def _wire(monkeypatch, session_factory, fake_client):
    monkeypatch.setattr(tasks, "SessionLocal", session_factory)
    monkeypatch.setattr(tasks, "ShopifyClient", lambda: fake_client)


def test_inline_dispatch_runs_price_update(monkeypatch, db, session_factory, fake_client, make_product):
    make_product(variant_product_id=VARIANT_PRODUCT_ID)
    variant_repo.create_synthesized_variants(db, [
        VariantDraft(title="Default Variant", price=Decimal("10.00"),
                     shopify_product_id=BASE_ID, shopify_variant_id=9001),
    ])
    db.commit()
    _wire(monkeypatch, session_factory, fake_client)
    monkeypatch.setattr(settings, "SYNC_TASKS_INLINE", True)

    mode = tasks.dispatch_base_price_changed(SHOP, {"id": BASE_ID, "variants": [{"price": "11.50"}]})

    assert mode == "inline"
    (_, _, body), = fake_client.calls_to("update_product_variants_batch")
    assert body["variants"] == [{"id": 9001, "price": "11.50"}]
    (status,) = status_repo.list_statuses(db, kind="price_update")
    assert status.status == "SUCCESS"


def test_queued_dispatch_uses_variant_sync_queue(monkeypatch):
    sent = []
    monkeypatch.setattr(settings, "SYNC_TASKS_INLINE", False)
    monkeypatch.setattr(tasks.propagate_base_price, "apply_async", lambda **kw: sent.append(kw))

    assert tasks.dispatch_base_price_changed(SHOP, {"id": BASE_ID}) == "queued"
    assert sent == [{"args": [SHOP, {"id": BASE_ID}], "queue": "variant_sync"}]


def test_price_task_ignores_unknown_product(monkeypatch, session_factory, fake_client):
    _wire(monkeypatch, session_factory, fake_client)

    assert tasks.propagate_base_price.run(SHOP, {"id": 424242, "variants": [{"price": "1.00"}]}) is None
    assert fake_client.calls == []


def test_sync_task_returns_banner_shape(monkeypatch, session_factory, fake_client, make_product):
    make_product(groups=[("Size", "WEIGHT", [("8oz", 8)])])
    _wire(monkeypatch, session_factory, fake_client)

    assert tasks.sync_product_variants.run(SHOP, BASE_ID) == {"error": False, "message": ""}
    assert len(fake_client.calls_to("create_product")) == 1
