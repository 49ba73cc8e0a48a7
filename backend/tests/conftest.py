# 公共 fixture：内存 SQLite + 假 Shopify client + 记录事件 + 本地锁
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
import app.db.model  # noqa: F401  注册全部表
from app.core.events import RecordingEventLogger
from app.orchestration.variant_sync.locks import LocalProductLock
from app.repository import access_repo, variant_repo


SHOP = "demo-store.myshopify.com"
TOKEN = "shpat_test_token"
BASE_ID = 1001
VARIANT_PRODUCT_ID = 555


@pytest.fixture
def engine():
    # StaticPool：所有连接共用同一个内存库（TestClient 在线程池里跑接口也能看到同一份数据）
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def events() -> RecordingEventLogger:
    return RecordingEventLogger()


@pytest.fixture
def lock() -> LocalProductLock:
    return LocalProductLock(blocking_sec=1)



# ---------- 假 Shopify client ----------
class FakeShopifyClient:
    """
    记录每次调用 (method, args)；返回值默认模拟 Shopify 的正常响应。
    overrides[method] 可以是返回值、异常实例，或 callable(*args)。
    """

    def __init__(self, *, root_price: str = "10.00", taxable: bool = True, title: str = "Coffee Beans") -> None:
        self.calls: List[Tuple[str, tuple]] = []
        self.overrides: Dict[str, Any] = {}
        self.root_price = root_price
        self.taxable = taxable
        self.title = title
        self.variant_product_id = VARIANT_PRODUCT_ID
        self.extra_remote_variants: List[Dict[str, Any]] = []
        self.drop_remote_variants = 0
        self._next_variant_id = 9001
        self._next_metafield_id = 701

    # -- helpers --
    def _record(self, name: str, *args: Any) -> Optional[Any]:
        self.calls.append((name, args))
        if name not in self.overrides:
            return None
        value = self.overrides[name]
        if isinstance(value, BaseException):
            raise value
        if callable(value):
            return value(*args)
        return value

    def calls_to(self, name: str) -> List[tuple]:
        return [args for n, args in self.calls if n == name]

    def _product_response(self, product_id: int, product: Dict[str, Any]) -> Dict[str, Any]:
        variants = []
        submitted = list(product.get("variants") or [])
        if self.drop_remote_variants:
            submitted = submitted[: max(0, len(submitted) - self.drop_remote_variants)]
        for idx, v in enumerate(submitted, start=1):
            variants.append({"id": self._next_variant_id, "position": idx, **v})
            self._next_variant_id += 1
        variants.extend(self.extra_remote_variants)
        return {"product": {"id": product_id, "title": product.get("title"), "variants": variants}}

    # -- ShopifyClient 接口 --
    def get_root_product(self, shop, token, product_id):
        res = self._record("get_root_product", shop, token, product_id)
        if res is not None:
            return res
        return {"product": {
            "id": product_id,
            "title": self.title,
            "variants": [{"id": 1, "price": self.root_price, "taxable": self.taxable}],
        }}

    def create_product(self, shop, token, product):
        res = self._record("create_product", shop, token, product)
        if res is not None:
            return res
        return self._product_response(self.variant_product_id, product)

    def update_product(self, shop, token, product):
        res = self._record("update_product", shop, token, product)
        if res is not None:
            return res
        return self._product_response(int(product["id"]), product)

    def update_product_variants_batch(self, shop, token, product):
        res = self._record("update_product_variants_batch", shop, token, product)
        if res is not None:
            return res
        return {"product": {"id": product["id"], "variants": list(product.get("variants") or [])}}

    def delete_variant(self, shop, token, product_id, variant_id):
        res = self._record("delete_variant", shop, token, product_id, variant_id)
        return {} if res is None else res

    def create_metafield(self, shop, token, product_id, field):
        res = self._record("create_metafield", shop, token, product_id, field)
        if res is not None:
            return res
        mid = self._next_metafield_id
        self._next_metafield_id += 1
        return {"metafield": {"id": mid, **field}}

    def update_metafield(self, shop, token, product_id, field):
        res = self._record("update_metafield", shop, token, product_id, field)
        return {"metafield": dict(field)} if res is None else res

    def delete_metafield(self, shop, token, product_id, metafield_id):
        res = self._record("delete_metafield", shop, token, product_id, metafield_id)
        return {} if res is None else res


@pytest.fixture
def fake_client() -> FakeShopifyClient:
    return FakeShopifyClient()



# ---------- 造数据 ----------
GroupSpec = Tuple[str, str, Sequence[Tuple[str, Any]]]     # (name, kind, [(label, value), ...])


@pytest.fixture
def make_product(db):
    """
    make_product(groups=[("Size", "WEIGHT", [("8oz", 8), ("16oz", 16)])], variant_product_id=555, sell_by_weight=True)
    同时写入店铺 token
    """

    def _make(
        *,
        groups: Sequence[GroupSpec] = (),
        base_id: int = BASE_ID,
        variant_product_id: Optional[int] = None,
        with_token: bool = True,
        **flags: Any,
    ):
        if with_token:
            access_repo.upsert_access_credential(db, SHOP, TOKEN)
        product = variant_repo.get_or_create_product(db, SHOP, base_id, title="Coffee Beans")
        for gi, (name, kind, options) in enumerate(groups, start=1):
            group = variant_repo.create_variant_group(db, product, name=name, modifier_kind=kind, position=gi)
            for oi, (label, value) in enumerate(options, start=1):
                variant_repo.create_variant(
                    db, group, label=label,
                    modifier_value=Decimal(str(value)) if value is not None else None,
                    position=oi,
                )
        if variant_product_id is not None or flags:
            variant_repo.update_product(db, product, variant_shopify_product_id=variant_product_id, **flags)
        db.commit()
        return product

    return _make
