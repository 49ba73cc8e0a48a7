from __future__ import annotations
from decimal import Decimal
from typing import Optional, List
from datetime import datetime

from sqlalchemy import (
    BigInteger, Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String,
    UniqueConstraint, func, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base



"""
  商品影子表（Shopify 远端商品的本地镜像）
  - base_shopify_product_id: 商家原始商品（价格的唯一来源）
  - variant_shopify_product_id: 我们合成变体后推上去的商品；首次 sync 成功前为 NULL
"""
class Product(Base):

    __tablename__ = "variant_products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shop: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    base_shopify_product_id:    Mapped[int]           = mapped_column(BigInteger, nullable=False)
    variant_shopify_product_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(255))

    # 前端表单上的展示开关
    sell_by_weight:   Mapped[bool]          = mapped_column(Boolean, nullable=False, server_default=text("false"))
    weight_unit:      Mapped[str]           = mapped_column(String(8), nullable=False, server_default=text("'lb'"))
    price_label:      Mapped[bool]          = mapped_column(Boolean, nullable=False, server_default=text("false"))
    additional_label: Mapped[Optional[str]] = mapped_column(String(75))

    # 三个 metafield 在 Shopify 上的 id（NULL = 远端不存在）
    price_string_metafield_id:     Mapped[Optional[int]] = mapped_column(BigInteger)
    price_label_metafield_id:      Mapped[Optional[int]] = mapped_column(BigInteger)
    additional_label_metafield_id: Mapped[Optional[int]] = mapped_column(BigInteger)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    variant_groups: Mapped[List["VariantGroup"]] = relationship(
        back_populates="product",
        order_by="VariantGroup.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("shop", "base_shopify_product_id", name="ux_variant_products_shop_base"),
    )



"""
  变体组：一个可选维度（如 Size），modifier_kind 决定它怎么影响价格
  WEIGHT / FEE / NONE，最多 3 组，WEIGHT 最多 1 组
"""
class VariantGroup(Base):

    __tablename__ = "variant_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("variant_products.id", ondelete="CASCADE"), index=True, nullable=False,
    )
    name:          Mapped[str] = mapped_column(String(255), nullable=False)
    modifier_kind: Mapped[str] = mapped_column(String(8), nullable=False)
    position:      Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    product: Mapped[Product] = relationship(back_populates="variant_groups")
    options: Mapped[List["VariantOption"]] = relationship(
        back_populates="group",
        order_by="VariantOption.position",
        cascade="all, delete-orphan",
    )



class VariantOption(Base):

    __tablename__ = "variant_options"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("variant_groups.id", ondelete="CASCADE"), index=True, nullable=False,
    )
    label:          Mapped[str]               = mapped_column(String(255), nullable=False)
    modifier_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 4))   # WEIGHT=oz, FEE=金额, NONE=NULL
    position:       Mapped[int]               = mapped_column(Integer, nullable=False, server_default=text("0"))

    group: Mapped[VariantGroup] = relationship(back_populates="options")



"""
  合成变体：每次全量 sync 先删后插，不做增量 diff
  to_multiply / to_add 存下来，改价时直接 new_price * to_multiply + to_add，不用重新展开组合
"""
class SynthesizedVariant(Base):

    __tablename__ = "synthesized_variants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shopify_product_id: Mapped[int] = mapped_column(BigInteger, nullable=False)   # = Product.base_shopify_product_id

    title:   Mapped[Optional[str]] = mapped_column(String(255))
    option1: Mapped[Optional[str]] = mapped_column(String(255))
    option2: Mapped[Optional[str]] = mapped_column(String(255))
    option3: Mapped[Optional[str]] = mapped_column(String(255))
    option1_variant: Mapped[Optional[int]] = mapped_column(Integer)   # 来源 VariantOption.id
    option2_variant: Mapped[Optional[int]] = mapped_column(Integer)
    option3_variant: Mapped[Optional[int]] = mapped_column(Integer)

    price:       Mapped[Decimal]           = mapped_column(Numeric(12, 2), nullable=False)
    weight:      Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 4))
    weight_unit: Mapped[Optional[str]]     = mapped_column(String(8))
    to_multiply: Mapped[Decimal]           = mapped_column(Numeric(16, 8), nullable=False, server_default=text("1"))
    to_add:      Mapped[Decimal]           = mapped_column(Numeric(12, 4), nullable=False, server_default=text("0"))

    taxable:          Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    inventory_policy: Mapped[str]  = mapped_column(String(16), nullable=False, server_default=text("'continue'"))

    shopify_variant_id: Mapped[Optional[int]] = mapped_column(BigInteger)
    position:           Mapped[int]           = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_synthesized_variants_product_position", "shopify_product_id", "position"),
    )
