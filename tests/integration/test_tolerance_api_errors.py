from fastapi.testclient import TestClient

from fitcalc.main import app


client = TestClient(app)


def _fit(**params):
    return client.get("/api/v1/tolerance/fit", params=params)


def test_fit_invalid_number_returns_400():
    resp = _fit(diameter_mm="25.0001", hole="H7", shaft="g6")
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["code"] == "INVALID_NUMBER"
    assert detail["context"]["value"] == "25.0001"


def test_fit_invalid_designation_returns_400():
    resp = _fit(diameter_mm="25", hole="7H", shaft="g6")
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_DESIGNATION"


def test_fit_kind_mismatch_returns_400():
    resp = _fit(diameter_mm="25", hole="h7", shaft="g6")
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["code"] == "KIND_MISMATCH"
    assert detail["context"]["field"] == "hole"


def test_fit_out_of_range_returns_400():
    resp = _fit(diameter_mm="1000.001", hole="H7", shaft="g6")
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "OUT_OF_RANGE"


def test_fit_unknown_zone_returns_404():
    resp = _fit(diameter_mm="25", hole="Q7", shaft="g6")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "UNKNOWN_ZONE"


def test_fit_no_table_entry_returns_404():
    resp = _fit(diameter_mm="25", hole="H9", shaft="g6")
    assert resp.status_code == 404
    detail = resp.json()["detail"]
    assert detail["code"] == "NO_TABLE_ENTRY"
    assert detail["context"]["bucket"] == 6


def test_fit_missing_param_returns_422():
    resp = client.get("/api/v1/tolerance/fit", params={"diameter_mm": "25", "hole": "H7"})
    assert resp.status_code == 422


def test_grade_options_kind_mismatch_returns_400():
    resp = client.get("/api/v1/tolerance/options/grades", params={"diameter_mm": "25", "kind": "shaft", "zone": "H"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "KIND_MISMATCH"


def test_batch_without_input_returns_400():
    resp = client.post("/api/v1/tolerance/batch", json={})
    assert resp.status_code == 400


def test_broken_index_artifact_fails_readiness(monkeypatch, tmp_path):
    broken = tmp_path / "index.json"
    broken.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("REFERENCE_INDEX_PATH", str(broken))
    resp = client.get("/ready")
    assert resp.status_code == 503


def test_fit_overlong_diameter_returns_400():
    resp = _fit(diameter_mm="9" * 5000, hole="H7", shaft="g6")
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_NUMBER"
