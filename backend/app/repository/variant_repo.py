# variant database repository
# 只 flush 不 commit：事务边界由 orchestration 层决定（先删后插必须在同一个事务里）

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from app.db.model.product import Product, SynthesizedVariant, VariantGroup, VariantOption


# Product 上允许通过 update_product 修改的字段
PRODUCT_FIELDS = (
    "title",
    "variant_shopify_product_id",
    "sell_by_weight",
    "weight_unit",
    "price_label",
    "additional_label",
    "price_string_metafield_id",
    "price_label_metafield_id",
    "additional_label_metafield_id",
)



# ---------- Product ----------
def get_product_with_variant_groups(db: Session, shop: str, base_product_id: int) -> Optional[Product]:
    """连同 variant_groups / options 一次性加载（sync 全程要用）"""
    stmt = (
        select(Product)
        .where(Product.shop == shop, Product.base_shopify_product_id == int(base_product_id))
        .options(selectinload(Product.variant_groups).selectinload(VariantGroup.options))
    )
    return db.scalars(stmt).first()


def get_product_by_base_id(db: Session, shop: str, base_product_id: int) -> Optional[Product]:
    stmt = select(Product).where(
        Product.shop == shop,
        Product.base_shopify_product_id == int(base_product_id),
    )
    return db.scalars(stmt).first()


def get_or_create_product(db: Session, shop: str, base_product_id: int, *, title: Optional[str] = None) -> Product:
    product = get_product_with_variant_groups(db, shop, base_product_id)
    if product is not None:
        return product
    product = Product(shop=shop, base_shopify_product_id=int(base_product_id), title=title)
    db.add(product)
    db.flush()
    return product


def update_product(db: Session, product: Product, **fields: Any) -> Product:
    unknown = set(fields) - set(PRODUCT_FIELDS)
    if unknown:
        raise ValueError(f"unknown product fields: {sorted(unknown)}")
    for key, value in fields.items():
        setattr(product, key, value)
    db.add(product)
    db.flush()
    return product



# ---------- VariantGroup / VariantOption ----------
def create_variant_group(db: Session, product: Product, *, name: str, modifier_kind: str, position: int) -> VariantGroup:
    group = VariantGroup(name=name, modifier_kind=modifier_kind, position=position)
    product.variant_groups.append(group)
    db.flush()
    return group


def create_variant(db: Session, group: VariantGroup, *, label: str, modifier_value=None, position: int) -> VariantOption:
    option = VariantOption(label=label, modifier_value=modifier_value, position=position)
    group.options.append(option)
    db.flush()
    return option


def delete_variant(db: Session, option: VariantOption) -> None:
    group = option.group
    if group is not None and option in group.options:
        group.options.remove(option)     # delete-orphan 负责真正删除
    else:
        db.delete(option)
    db.flush()


def delete_variant_group(db: Session, group: VariantGroup) -> None:
    product = group.product
    if product is not None and group in product.variant_groups:
        product.variant_groups.remove(group)
    else:
        db.delete(group)
    db.flush()



# ---------- SynthesizedVariant ----------
def get_all_synthesized_variants(db: Session, base_product_id: int) -> List[SynthesizedVariant]:
    """按 position 升序（改价时要和远端顺序一致）"""
    stmt = (
        select(SynthesizedVariant)
        .where(SynthesizedVariant.shopify_product_id == int(base_product_id))
        .order_by(SynthesizedVariant.position.asc(), SynthesizedVariant.id.asc())
    )
    return list(db.scalars(stmt))


def delete_all_synthesized_variants(db: Session, base_product_id: int) -> int:
    res = db.execute(
        delete(SynthesizedVariant).where(SynthesizedVariant.shopify_product_id == int(base_product_id))
    )
    db.flush()
    return int(res.rowcount or 0)


def create_synthesized_variants(db: Session, drafts: Iterable) -> List[SynthesizedVariant]:
    """VariantDraft -> 行；价格在落库时四舍五入到分"""
    rows = [
        SynthesizedVariant(
            shopify_product_id=d.shopify_product_id,
            title=d.title,
            option1=d.option1, option2=d.option2, option3=d.option3,
            option1_variant=d.option1_variant,
            option2_variant=d.option2_variant,
            option3_variant=d.option3_variant,
            price=d.rounded_price,
            weight=d.weight,
            weight_unit=d.weight_unit,
            to_multiply=d.to_multiply,
            to_add=d.to_add,
            taxable=d.taxable,
            inventory_policy=d.inventory_policy,
            shopify_variant_id=d.shopify_variant_id,
            position=d.position,
        )
        for d in drafts
    ]
    db.add_all(rows)
    db.flush()
    return rows


def replace_synthesized_variants(db: Session, base_product_id: int, drafts: Sequence) -> List[SynthesizedVariant]:
    """全量替换：先删后插（调用方负责在同一事务内 commit）"""
    delete_all_synthesized_variants(db, base_product_id)
    return create_synthesized_variants(db, drafts)
