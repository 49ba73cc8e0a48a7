#!/usr/bin/env python3
from __future__ import annotations
import argparse, json, sys

from app.core.logging import configure_logging
from app.db.session import session_scope
from app.integrations.shopify.shopify_client import ShopifyClient
from app.orchestration.variant_sync.sync_reconciler import sync_variants
from app.repository.access_repo import upsert_access_credential


'''
运维小脚本：对一个商品手动跑一次完整 sync（不经过前端 Save）
    - 可选 --token：先把店铺 token 写进 shop_access（新店铺初始化时用）
    python scripts/sync_product.py --shop my-store.myshopify.com --product-id 1234567890
'''
def main():
    ap = argparse.ArgumentParser(description="Run a full variant sync for one product.")
    ap.add_argument("--shop", required=True)
    ap.add_argument("--product-id", type=int, required=True)
    ap.add_argument("--token", help="Store/replace the shop's Admin API access token before syncing")
    args = ap.parse_args()

    configure_logging()
    with session_scope() as db:
        if args.token:
            upsert_access_credential(db, args.shop, args.token)
        result = sync_variants(db, ShopifyClient(), shop=args.shop, product_id=args.product_id)
    print(json.dumps(
        {**result.as_response(), "state": result.state.value, "variants": result.variant_count},
        ensure_ascii=False, indent=2,
    ))
    sys.exit(1 if result.error else 0)


if __name__ == "__main__":
    main()
