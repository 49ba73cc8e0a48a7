"""
   变体同步专用异常类型。
   纯计算层（modifiers / ordering / expander）只会抛 VariantValidationError；
   编排层（sync / price update）负责把其余异常收敛进返回结果或 UpdateStatus。
"""


class VariantSyncError(Exception):
    """Base for all variant sync errors."""


class VariantValidationError(VariantSyncError):
    """Group count / kind / option violations. Rejected before any remote call, never retried."""


class RemoteRejection(VariantSyncError):
    """Shopify answered with a structured error body (4xx + errors)."""

    def __init__(self, message: str, body=None):
        super().__init__(message)
        self.body = body


class TransientIOError(VariantSyncError):
    """Network / timeout / lock contention. Caller may re-run the whole sync."""


class PersistenceError(VariantSyncError):
    """Local store failed after a successful remote push: remote and local state diverged."""
