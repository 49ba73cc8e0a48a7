# app/api/v1/webhooks_shopify.py

from __future__ import annotations
import hmac, hashlib, base64, json, logging
from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request

from app.core.config import settings
from app.orchestration.variant_sync.tasks import dispatch_base_price_changed


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks/shopify", tags=["webhooks.shopify"])


# =============== 公共：HMAC 校验（Shopify Webhook 签名） ===============
def _webhook_secret() -> str:
    secret = settings.SHOPIFY_WEBHOOK_SECRET
    if hasattr(secret, "get_secret_value"):
        secret = secret.get_secret_value()
    return secret or ""


def _compute_hmac_base64(secret: str, raw_body: bytes) -> str:
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def _verify_hmac_or_401(provided_hmac_b64: str, raw_body: bytes) -> None:
    if not provided_hmac_b64:
        raise HTTPException(status_code=401, detail="Missing HMAC")

    secret = _webhook_secret()
    if not secret:
        # 没配 secret 时一律拒绝，不能放行未签名的请求
        logger.error("webhook.secret_missing SHOPIFY_WEBHOOK_SECRET is not configured")
        raise HTTPException(status_code=401, detail="Webhook secret not configured")

    expected = _compute_hmac_base64(secret, raw_body)
    if not hmac.compare_digest(provided_hmac_b64, expected):
        raise HTTPException(status_code=401, detail="Invalid HMAC")



'''
Webhook: products/update
   - 商家在后台改了原始商品（通常是改价）→ 重新算所有合成变体的价格
   - body 就是 Shopify product 对象：{id, title, variants: [{price, ...}], ...}
   - 先验 HMAC，再看 topic；通过后立即 200，真正的改价放到后台（celery 或当前进程 background task）
   - Shopify 至少投递一次，改价逻辑本身可重复执行
'''
@router.post("/products/update")
async def products_update(
    request: Request,
    background: BackgroundTasks,
    x_shopify_hmac_sha256: str = Header(default=""),
    x_shopify_topic: str = Header(default=""),
    x_shopify_shop_domain: str = Header(default=""),
):

    # 1) 先做 HMAC 校验，再看 Topic，避免用任意 Topic 绕过校验
    raw = await request.body()
    _verify_hmac_or_401(x_shopify_hmac_sha256, raw)

    # 2) 再校验 Topic（大小写不敏感）
    topic = (x_shopify_topic or "").strip().lower()
    if topic and topic != "products/update":
        return {"ok": True, "ignored": f"topic={x_shopify_topic}"}

    # 3) 解析 payload
    try:
        payload = json.loads(raw.decode("utf-8"))
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    if not isinstance(payload, dict) or payload.get("id") is None:
        raise HTTPException(status_code=400, detail="Missing product id")

    shop = (x_shopify_shop_domain or "").strip()
    if not shop:
        raise HTTPException(status_code=400, detail="Missing shop domain")

    # 4) 丢给后台，接口立即返回（Shopify 要求 5 秒内 200）
    background.add_task(_dispatch_safely, shop, payload)
    logger.info("webhook.products_update accepted shop=%s product=%s", shop, payload.get("id"))
    return {"ok": True, "product_id": payload.get("id")}


def _dispatch_safely(shop: str, payload: dict) -> None:
    try:
        dispatch_base_price_changed(shop, payload)
    except Exception:
        # 投递失败也不影响 webhook 的 200；UpdateStatus 里看不到记录时查这里的日志
        logger.exception("webhook.products_update dispatch failed shop=%s product=%s", shop, payload.get("id"))
