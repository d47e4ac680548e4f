from fastapi.testclient import TestClient
from structlog.testing import capture_logs
from fitting.main import app


client = TestClient(app)


def test_catalog_score_requires_api_key():
    r = client.post("/v1/fit/catalog", json={})
    assert r.status_code == 401


def test_catalog_score(api_headers):
    payload = {
        "userMeasurements": {"bust": 90, "waist": 70},
        "product": {"_id": "p1", "baseMeasurements": {"bust": 90, "waist": 70}},
        "selectedSize": "M",
    }
    r = client.post("/v1/fit/catalog", json=payload, headers=api_headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["fitScore"] == 100
    assert data["fit"] == "perfect"
    assert data["sizeRecommendation"] == "M"
    assert data["source"] == "catalog"
    assert set(data["fitDetails"]) == {"shoulders", "bust", "waist", "hips", "length"}


def test_catalog_score_size_overrides(api_headers):
    payload = {
        "userMeasurements": {"waist": 90},
        "product": {
            "baseMeasurements": {"waist": 70},
            "sizes": [{"size": "XL", "quantity": 1, "measurements": {"waist": 90}}],
        },
        "selectedSize": "M",
    }
    r = client.post("/v1/fit/catalog", json=payload, headers=api_headers)
    data = r.json()
    assert data["fitScore"] == 50
    assert data["sizeRecommendation"] == "L"

    payload["selectedSize"] = "XL"
    data = client.post("/v1/fit/catalog", json=payload, headers=api_headers).json()
    assert data["fitScore"] == 100
    assert data["sizeRecommendation"] == "XL"


def test_catalog_score_fallback(api_headers):
    r = client.post("/v1/fit/catalog", json={"selectedSize": "S"}, headers=api_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["fit"] == "Standard"
    assert data["fitScore"] == 75
    assert data["sizeRecommendation"] == "S"


def test_custom_score(api_headers):
    payload = {
        "userMeasurements": {"bust": 100, "waist": 70, "shoulders": 43},
        "customDesign": {"designSpecifications": {"bust": 90, "waist": 70, "shoulders": 40}},
    }
    r = client.post("/v1/fit/custom", json=payload, headers=api_headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert abs(data["fitScore"] - 87.0) < 1e-9
    assert data["fit"] == "Loose"
    assert data["sizeRecommendation"] == "Custom"
    assert data["fitDetails"]["shoulders"] == "Slightly tight across shoulders"


def test_custom_score_fallback(api_headers):
    r = client.post("/v1/fit/custom", json={"userMeasurements": {"bust": 90}}, headers=api_headers)
    data = r.json()
    assert data["fit"] == "Perfect"
    assert data["fitScore"] == 95


def test_catalog_fallback_is_logged(api_headers):
    with capture_logs() as logs:
        r = client.post("/v1/fit/catalog", json={"selectedSize": "S"}, headers=api_headers)
    assert r.status_code == 200
    events = [e for e in logs if e["event"] == "fitting_fallback_used"]
    assert len(events) == 1
    assert events[0]["log_level"] == "warning"
    assert events[0]["path"] == "catalog"
    assert events[0]["has_product"] is False


def test_boolean_measurement_is_not_a_number(api_headers):
    payload = {
        "userMeasurements": {"bust": True},
        "product": {"baseMeasurements": {"bust": 90}},
        "selectedSize": "M",
    }
    r = client.post("/v1/fit/catalog", json=payload, headers=api_headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["fit"] == "Standard"
    assert data["fitScore"] == 75


def test_unparseable_measurement_is_skipped(api_headers):
    payload = {
        "userMeasurements": {"bust": "n/a", "waist": 70},
        "product": {"baseMeasurements": {"bust": 90, "waist": 70}},
        "selectedSize": "M",
    }
    r = client.post("/v1/fit/catalog", json=payload, headers=api_headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["fitScore"] == 100
    assert data["fitDetails"]["bust"] == "No data available"
    assert data["fitDetails"]["waist"] == "Perfect fit"
