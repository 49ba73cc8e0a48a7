# Shopify client 异常 -> 变体同步异常

from __future__ import annotations

from typing import Any, Callable

from app.integrations.shopify.errors import ShopifyPayloadError, ShopifyTransientError
from app.integrations.shopify.payload_utils import error_message, is_error_response
from app.services.variants.errors import RemoteRejection, TransientIOError


def call_remote(op: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """重试耗尽 -> TransientIOError；返回体解析不了 -> RemoteRejection"""
    try:
        return fn(*args, **kwargs)
    except ShopifyTransientError as e:
        raise TransientIOError(f"{op}: {e}") from e
    except ShopifyPayloadError as e:
        raise RemoteRejection(f"{op}: {e}") from e


def ensure_accepted(resp: Any) -> Any:
    """{"errors": ...} -> RemoteRejection（带上原始 body）"""
    if is_error_response(resp):
        raise RemoteRejection(error_message(resp), resp)
    return resp
