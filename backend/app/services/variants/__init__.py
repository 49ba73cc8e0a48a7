"""
对外统一入口：变体组合的纯计算部分（不碰 DB / 网络）
"""

from .errors import (
    VariantSyncError, VariantValidationError, RemoteRejection, TransientIOError, PersistenceError,
)
from .modifiers import ModifierKind, ModifierEffect, apply_modifier, parse_money, preview_option_price, round_money
from .ordering import sort_variant_groups
from .expander import VariantDraft, expand_variants, build_option_descriptors


__all__ = [
    "VariantSyncError", "VariantValidationError", "RemoteRejection", "TransientIOError", "PersistenceError",
    "ModifierKind", "ModifierEffect", "apply_modifier", "parse_money", "preview_option_price", "round_money",
    "sort_variant_groups",
    "VariantDraft", "expand_variants", "build_option_descriptors",
]
