# 聚合导入所有模型，供 Alembic 发现

from .product import (
    Product,
    VariantGroup,
    VariantOption,
    SynthesizedVariant,
)
from .update_status import UpdateStatus, Status
from .shop_access import ShopAccess

__all__ = [
    # product
    "Product", "VariantGroup", "VariantOption", "SynthesizedVariant",
    # others
    "UpdateStatus", "Status", "ShopAccess",
]
