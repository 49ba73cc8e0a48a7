import base64
import hashlib
import hmac
import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import SecretStr

from app.api.v1 import webhooks_shopify
from app.core.config import settings


SECRET = "s3cret"
SHOP = "demo-store.myshopify.com"
PRODUCT = {"id": 1001, "title": "Coffee Beans", "variants": [{"id": 1, "price": "20.00"}]}


def _sign(raw: bytes, secret: str = SECRET) -> str:
    return base64.b64encode(hmac.new(secret.encode(), raw, hashlib.sha256).digest()).decode()


@pytest.fixture
def dispatched(monkeypatch):
    calls = []
    monkeypatch.setattr(settings, "SHOPIFY_WEBHOOK_SECRET", SecretStr(SECRET))
    monkeypatch.setattr(webhooks_shopify, "dispatch_base_price_changed",
                        lambda shop, payload: calls.append((shop, payload)) or "inline")
    return calls


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.include_router(webhooks_shopify.router)
    return TestClient(app)


def _post(client, raw: bytes, *, hmac_header=None, topic="products/update", shop=SHOP):
    headers = {
        "Content-Type": "application/json",
        "X-Shopify-Topic": topic,
        "X-Shopify-Shop-Domain": shop,
    }
    if hmac_header is not None:
        headers["X-Shopify-Hmac-Sha256"] = hmac_header
    return client.post("/webhooks/shopify/products/update", content=raw, headers=headers)


def test_valid_webhook_is_dispatched(client, dispatched):
    raw = json.dumps(PRODUCT).encode()

    resp = _post(client, raw, hmac_header=_sign(raw))

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "product_id": 1001}
    assert dispatched == [(SHOP, PRODUCT)]


def test_bad_signature_is_rejected(client, dispatched):
    raw = json.dumps(PRODUCT).encode()

    assert _post(client, raw, hmac_header=_sign(raw, "wrong")).status_code == 401
    assert _post(client, raw).status_code == 401
    assert dispatched == []


def test_missing_secret_rejects_everything(client, dispatched, monkeypatch):
    monkeypatch.setattr(settings, "SHOPIFY_WEBHOOK_SECRET", None)
    raw = json.dumps(PRODUCT).encode()

    assert _post(client, raw, hmac_header=_sign(raw)).status_code == 401
    assert dispatched == []


def test_other_topics_are_ignored(client, dispatched):
    raw = json.dumps(PRODUCT).encode()

    resp = _post(client, raw, hmac_header=_sign(raw), topic="products/delete")

    assert resp.status_code == 200
    assert resp.json()["ignored"] == "topic=products/delete"
    assert dispatched == []


@pytest.mark.parametrize("raw", [b"not json", json.dumps({"title": "no id"}).encode()])
def test_malformed_payload_is_400(client, dispatched, raw):
    assert _post(client, raw, hmac_header=_sign(raw)).status_code == 400
    assert dispatched == []


def test_missing_shop_domain_is_400(client, dispatched):
    raw = json.dumps(PRODUCT).encode()
    assert _post(client, raw, hmac_header=_sign(raw), shop="").status_code == 400


def test_dispatch_failure_still_returns_200(client, monkeypatch):
    monkeypatch.setattr(settings, "SHOPIFY_WEBHOOK_SECRET", SecretStr(SECRET))

    def _boom(shop, payload):
        raise RuntimeError("broker down")

    monkeypatch.setattr(webhooks_shopify, "dispatch_base_price_changed", _boom)
    raw = json.dumps(PRODUCT).encode()

    assert _post(client, raw, hmac_header=_sign(raw)).status_code == 200
