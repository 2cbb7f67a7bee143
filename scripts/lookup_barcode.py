# Run after `pip install -e .`; the script directory, not the repo root, is on sys.path.
import json
import sys

from ecoscan.services.product_catalog import CatalogError, OpenFoodFactsCatalog
from ecoscan.sustainability import build_product_info

if len(sys.argv) != 2:
    sys.exit("usage: python scripts/lookup_barcode.py <barcode>  (needs the package installed: pip install -e .)")

barcode = sys.argv[1].strip()
try:
    product = OpenFoodFactsCatalog().fetch_product(barcode)
except CatalogError as e:
    sys.exit(f"Lookup failed for {barcode}: {e}")

info = build_product_info(barcode, product)
print(json.dumps(info.model_dump(by_alias=True, exclude_none=True), indent=2, ensure_ascii=False))
