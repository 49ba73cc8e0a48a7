"""
   Shopify Admin REST 集成层异常。
   4xx 不抛异常（返回 {"errors": ...} 交给上层决定），只有重试耗尽/响应不可解析才抛。
"""


class ShopifyError(Exception):
    """Base for all Shopify client errors."""


class ShopifyTransientError(ShopifyError):
    """429 / 5xx / timeout / connection errors still failing after retries."""


class ShopifyPayloadError(ShopifyError):
    """2xx response whose body is not the JSON shape we expect."""
