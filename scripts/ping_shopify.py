#!/usr/bin/env python3
from __future__ import annotations
import argparse, json, sys

from app.db.session import session_scope
from app.integrations.shopify.payload_utils import is_error_response, root_variant_fields
from app.integrations.shopify.shopify_client import ShopifyClient
from app.repository.access_repo import get_access_credential


'''
连通性检查：用库里保存的 token 拉一次原始商品，打印 variants[0] 的价格 / 是否含税
    python scripts/ping_shopify.py --shop my-store.myshopify.com --product-id 1234567890
'''
def main():
    ap = argparse.ArgumentParser(description="Fetch a root product to verify shop token / API version.")
    ap.add_argument("--shop", required=True)
    ap.add_argument("--product-id", type=int, required=True)
    args = ap.parse_args()

    with session_scope() as db:
        token = get_access_credential(db, args.shop)
    if not token:
        print(f"ERROR: no access token stored for {args.shop}", file=sys.stderr)
        sys.exit(2)

    resp = ShopifyClient().get_root_product(args.shop, token, args.product_id)
    if is_error_response(resp):
        print(json.dumps(resp, ensure_ascii=False, indent=2), file=sys.stderr)
        sys.exit(1)

    price, taxable, title = root_variant_fields(resp)
    print(json.dumps({"title": title, "price": str(price), "taxable": taxable}, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()


# 运行（在 backend/ 下）
# export $(grep -v '^#' .env | xargs)
# PYTHONPATH=. python ../scripts/ping_shopify.py --shop ... --product-id ...
