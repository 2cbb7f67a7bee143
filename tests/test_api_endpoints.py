from fastapi.testclient import TestClient

from ecoscan.app import app
from ecoscan.models import RawProduct
from ecoscan.services.product_catalog import ProductNotFoundError, UpstreamError, get_catalog

client = TestClient(app)

NUTELLA = {
    "product_name": "Nutella",
    "brands": "Ferrero",
    "image_front_url": "https://images.openfoodfacts.org/nutella.jpg",
    "ingredients_text": "Sugar, palm oil, hazelnuts",
    "allergens_hierarchy": ["en:milk", "en:nuts"],
    "nutrient_levels": {"fat": "high", "sugars": "high"},
    "ecoscore_grade": "e",
    "ecoscore_data": {
        "adjustments": {
            "packaging": {"value": -10, "non_recyclable_and_non_biodegradable_materials": 1},
            "origins_of_ingredients": {"value": -5, "warning": "origins_are_100_percent_unknown"},
            "production_system": {"labels": ["en:sustainable-palm-oil"]},
        }
    },
}


class FakeCatalog:
    def __init__(self, products=None, error=None):
        self.products = products or {}
        self.error = error
        self.calls = []

    def fetch_product(self, barcode):
        self.calls.append(barcode)
        if self.error:
            raise self.error
        if barcode not in self.products:
            raise ProductNotFoundError("Product not found in database")
        return RawProduct.from_payload(self.products[barcode])


def _use(catalog):
    app.dependency_overrides[get_catalog] = lambda: catalog
    return catalog


def teardown_function():
    app.dependency_overrides.clear()


def test_product_info_success():
    _use(FakeCatalog({"3017620422003": NUTELLA}))
    r = client.post("/api/product-info", json={"barcode": "3017620422003"})
    assert r.status_code == 200
    data = r.json()
    assert data["barcode"] == "3017620422003"
    assert data["productName"] == "Nutella"
    assert data["brand"] == "Ferrero"
    assert data["imageUrl"].endswith("nutella.jpg")
    assert data["allergens"] == ["en:milk", "en:nuts"]
    assert data["ecoScoreGrade"] == "E"
    assert data["color"] == "red"
    assert data["nutrientLevels"] == {"fat": "high", "sugars": "high"}
    sdg = data["sdg12Info"]
    assert set(sdg) == {"packaging", "ingredientOrigins", "productionMethod"}
    assert sdg["packaging"]["score"] == "bad"
    assert sdg["ingredientOrigins"]["score"] == "unknown"
    assert sdg["productionMethod"] == {
        "score": "good",
        "details": "Certified with sustainable labels: Sustainable Palm Oil.",
    }

def test_product_info_minimal_record_omits_missing_fields():
    _use(FakeCatalog({"42": {"ecoscore_grade": "a", "allergens_hierarchy": ["en:milk"]}}))
    r = client.post("/api/product-info", json={"barcode": "42"})
    assert r.status_code == 200
    data = r.json()
    assert data["color"] == "green"
    assert data["allergens"] == ["en:milk"]
    assert "imageUrl" not in data
    assert "nutrientLevels" not in data
    assert all(f["score"] == "unknown" and f["details"] for f in data["sdg12Info"].values())

def test_missing_barcode_is_rejected_without_lookup():
    catalog = _use(FakeCatalog())
    payloads = (
        {},
        {"barcode": ""},
        {"barcode": "   "},
        {"barcode": None},
        {"barcode": False},
        {"barcode": True},
        {"barcode": 0},
        {"barcode": ["3017620422003"]},
        {"barcode": {"code": "3017620422003"}},
        {"barcode": 3.5},
    )
    for payload in payloads:
        r = client.post("/api/product-info", json=payload)
        assert r.status_code == 400
        assert r.json() == {"error": "Barcode is required"}
    r = client.post("/api/product-info")
    assert r.status_code == 400
    assert catalog.calls == []

def test_non_object_body_is_a_missing_barcode():
    catalog = _use(FakeCatalog())
    for body in ("12345", ["3017620422003"], 42):
        r = client.post("/api/product-info", json=body)
        assert r.status_code == 400
        assert r.json() == {"error": "Barcode is required"}
    assert catalog.calls == []

def test_unparseable_body_is_a_server_error():
    catalog = _use(FakeCatalog())
    r = client.post(
        "/api/product-info",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 500
    assert r.json() == {"error": "Internal Server Error", "details": "Request body is not valid JSON"}
    assert catalog.calls == []

def test_numeric_barcode_is_accepted():
    catalog = _use(FakeCatalog({"737628064502": NUTELLA}))
    r = client.post("/api/product-info", json={"barcode": 737628064502})
    assert r.status_code == 200
    assert r.json()["barcode"] == "737628064502"
    assert catalog.calls == ["737628064502"]

def test_product_not_found():
    _use(FakeCatalog())
    r = client.post("/api/product-info", json={"barcode": "0000000000000"})
    assert r.status_code == 404
    assert r.json() == {"error": "Product not found in database"}

def test_upstream_failure():
    _use(FakeCatalog(error=UpstreamError("API call failed with status: 503")))
    r = client.post("/api/product-info", json={"barcode": "3017620422003"})
    assert r.status_code == 500
    assert r.json() == {"error": "Internal Server Error", "details": "API call failed with status: 503"}

def test_unexpected_failure():
    _use(FakeCatalog(error=RuntimeError("boom")))
    r = client.post("/api/product-info", json={"barcode": "3017620422003"})
    assert r.status_code == 500
    assert r.json() == {"error": "Internal Server Error", "details": "boom"}

def test_config_endpoint():
    r = client.get("/api/config")
    assert r.status_code == 200
    data = r.json()
    assert data["catalog_base_url"].startswith("http")
    assert data["catalog_timeout_seconds"] > 0
