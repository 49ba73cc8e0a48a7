"""面向 Admin REST API 的轻量 Client, 只放变体同步用到的 product / variant / metafield 方法"""
from __future__ import annotations

import time, logging, requests
from typing import Any, Dict, Optional
from requests import Timeout, RequestException

from app.core.config import settings
from app.integrations.shopify.errors import ShopifyPayloadError, ShopifyTransientError


logger = logging.getLogger(__name__)


# ---------------- 基础：端点 & 认证 ----------------

# 每个店铺一个域名：https://{shop}/admin/api/{version}/{path}
def _rest_endpoint(shop: str, path: str, api_version: str) -> str:
    return f"https://{shop}/admin/api/{api_version}/{path.lstrip('/')}"


def _auth_headers(access_token: Any) -> dict:
    # 兼容 SecretStr 或 str
    if hasattr(access_token, "get_secret_value"):
        access_token = access_token.get_secret_value()
    return {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "X-Shopify-Access-Token": access_token or "",
        "User-Agent": "WeightVariantSync/ShopifyClient (+python)",
    }


def _error_body(resp: requests.Response) -> Dict[str, Any]:
    """4xx 统一成 {"errors": ...}；Shopify 多数情况已经是这个形状"""
    try:
        data = resp.json()
    except ValueError:
        return {"errors": (resp.text or "")[:500] or f"HTTP {resp.status_code}"}
    if isinstance(data, dict) and data.get("errors"):
        return {"errors": data["errors"]}
    return {"errors": data or f"HTTP {resp.status_code}"}



class ShopifyClient:

    def __init__(
        self,
        *,
        api_version: Optional[str] = None,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
        backoff_ms: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self.timeout = timeout or getattr(settings, "SHOPIFY_HTTP_TIMEOUT", 30)
        self.max_retries = max(0, int(max_retries if max_retries is not None else getattr(settings, "SHOPIFY_HTTP_RETRIES", 3)))
        self.backoff_ms = max(50, int(backoff_ms or getattr(settings, "SHOPIFY_HTTP_BACKOFF_MS", 200)))
        self._session = session or requests.Session()


    '''
    通用 REST 调用（带日志 + 重试）：
        - 2xx: 返回解析后的 JSON（DELETE 等空 body 返回 {}）
        - 429: 按 Retry-After（没有就指数退避）重试
        - 5xx / 超时 / 网络异常: 指数退避重试
        - 其他 4xx: 不重试，返回 {"errors": ...}，由上层当作远端拒绝处理
        重试耗尽抛 ShopifyTransientError
    '''
    def _request(
        self,
        method: str,
        shop: str,
        access_token: Any,
        path: str,
        *,
        json_body: Optional[dict] = None,
        op_name: str = "",
    ) -> Dict[str, Any]:

        url = _rest_endpoint(shop, path, self.api_version)
        last_error = ""

        for attempt in range(self.max_retries + 1):
            start = time.perf_counter()
            try:
                resp = self._session.request(
                    method,
                    url,
                    headers=_auth_headers(access_token),
                    json=json_body,
                    timeout=self.timeout,
                )
                latency_ms = int((time.perf_counter() - start) * 1000)
                status = resp.status_code

                if status == 429:
                    retry_after = resp.headers.get("Retry-After")
                    last_error = f"HTTP 429 retry_after={retry_after}"
                    logger.warning(
                        "shopify.rest.429_throttled op=%s latency_ms=%s attempt=%s/%s retry_after=%s",
                        op_name, latency_ms, attempt, self.max_retries, retry_after)
                    if attempt < self.max_retries:
                        try:
                            sleep_s = max(0.1, float(retry_after))
                        except (TypeError, ValueError):
                            sleep_s = self._backoff(attempt)
                        time.sleep(sleep_s)
                    continue

                if status >= 500:
                    last_error = f"HTTP {status}"
                    logger.warning(
                        "shopify.rest.http_error op=%s status=%s latency_ms=%s attempt=%s/%s",
                        op_name, status, latency_ms, attempt, self.max_retries)
                    if attempt < self.max_retries:
                        time.sleep(self._backoff(attempt))
                    continue

                if status >= 400:
                    body = _error_body(resp)
                    logger.warning(
                        "shopify.rest.rejected op=%s status=%s latency_ms=%s errors=%s",
                        op_name, status, latency_ms, body.get("errors"))
                    return body

                logger.info("shopify.rest.ok op=%s status=%s latency_ms=%s attempt=%s",
                    op_name, status, latency_ms, attempt)

                if not (resp.content or b"").strip():
                    return {}
                try:
                    data = resp.json()
                except ValueError:
                    raise ShopifyPayloadError(
                        f"{op_name} response is not JSON: status={status} body={(resp.text or '')[:200]}"
                    ) from None
                return data if isinstance(data, dict) else {"data": data}

            except Timeout:
                latency_ms = int((time.perf_counter() - start) * 1000)
                last_error = "timeout"
                logger.warning("shopify.rest.timeout op=%s latency_ms=%s attempt=%s/%s",
                    op_name, latency_ms, attempt, self.max_retries)
                if attempt < self.max_retries:
                    time.sleep(self._backoff(attempt))

            except RequestException as e:
                # 其他网络层/连接异常：允许重试
                latency_ms = int((time.perf_counter() - start) * 1000)
                last_error = type(e).__name__
                logger.warning("shopify.rest.request_exception op=%s latency_ms=%s attempt=%s/%s err=%s",
                    op_name, latency_ms, attempt, self.max_retries, last_error)
                if attempt < self.max_retries:
                    time.sleep(self._backoff(attempt))

        raise ShopifyTransientError(
            f"Shopify {op_name or method} failed after {self.max_retries + 1} attempts: {last_error}"
        )


    def _backoff(self, attempt: int) -> float:
        return (self.backoff_ms / 1000.0) * (2 ** attempt)


    # ---------- products ----------
    # 返回 {"product": {..., "variants": [...]}}；价格/是否含税以 variants[0] 为准
    def get_root_product(self, shop: str, access_token: Any, product_id: int) -> Dict[str, Any]:
        return self._request("GET", shop, access_token, f"products/{int(product_id)}.json",
                             op_name="product.get")


    def create_product(self, shop: str, access_token: Any, product: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", shop, access_token, "products.json",
                             json_body={"product": product}, op_name="product.create")


    """
        product = {id, options, variants}
        注意：REST 的 variants 是全量替换，没列出来的远端变体会被删掉
    """
    def update_product(self, shop: str, access_token: Any, product: Dict[str, Any]) -> Dict[str, Any]:
        product_id = int(product["id"])
        return self._request("PUT", shop, access_token, f"products/{product_id}.json",
                             json_body={"product": product}, op_name="product.update")


    # 改价：{id, variants: [{id, price}]}，一次请求带上全部变体
    def update_product_variants_batch(self, shop: str, access_token: Any, product: Dict[str, Any]) -> Dict[str, Any]:
        product_id = int(product["id"])
        body = {"product": {"id": product_id, "variants": list(product.get("variants") or [])}}
        return self._request("PUT", shop, access_token, f"products/{product_id}.json",
                             json_body=body, op_name="product.variants_batch")


    # ---------- variants ----------
    def delete_variant(self, shop: str, access_token: Any, product_id: int, variant_id: int) -> Dict[str, Any]:
        return self._request("DELETE", shop, access_token,
                             f"products/{int(product_id)}/variants/{int(variant_id)}.json",
                             op_name="variant.delete")


    # ---------- metafields ----------
    # field = {namespace, key, value, type}；返回 {"metafield": {"id": ...}}
    def create_metafield(self, shop: str, access_token: Any, product_id: int, field: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", shop, access_token, f"products/{int(product_id)}/metafields.json",
                             json_body={"metafield": field}, op_name="metafield.create")


    def update_metafield(self, shop: str, access_token: Any, product_id: int, field: Dict[str, Any]) -> Dict[str, Any]:
        metafield_id = int(field["id"])
        return self._request("PUT", shop, access_token,
                             f"products/{int(product_id)}/metafields/{metafield_id}.json",
                             json_body={"metafield": field}, op_name="metafield.update")


    def delete_metafield(self, shop: str, access_token: Any, product_id: int, metafield_id: int) -> Dict[str, Any]:
        return self._request("DELETE", shop, access_token,
                             f"products/{int(product_id)}/metafields/{int(metafield_id)}.json",
                             op_name="metafield.delete")
