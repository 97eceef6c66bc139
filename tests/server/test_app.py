from fastapi.testclient import TestClient

from analyst.server.app import ResultStore, create_app

BODY = {
    "graphId": "default",
    "destinationPointsetId": "default",
    "profile": True,
    "options": {"fromLat": 38.9, "toLat": 38.9, "fromLon": -77.03, "toLon": -77.03},
}


def make_client(store=None):
    return TestClient(create_app(store or ResultStore()))


def test_shapefiles():
    client = make_client(ResultStore(shapefiles=[{"id": "jobs", "name": "Jobs"}]))
    r = client.get("/api/shapefiles")
    assert r.status_code == 200
    assert r.json() == [{"id": "jobs", "name": "Jobs"}]


def test_single_stores_result():
    store = ResultStore()
    r = make_client(store).post("/api/single", json=BODY)
    assert r.status_code == 200
    res = r.json()
    assert res["graphId"] == "default"
    assert res["destinationPointsetId"] == "default"
    assert res["key"] in store.results


def test_single_vector():
    body = {k: v for k, v in BODY.items() if k != "destinationPointsetId"}
    r = make_client().post("/api/single", json=body)
    assert r.status_code == 200
    res = r.json()
    assert res["type"] == "FeatureCollection"
    assert res["features"][0]["geometry"]["coordinates"] == [-77.03, 38.9]


def test_single_unknown_graph():
    r = make_client().post("/api/single", json={**BODY, "graphId": "nope"})
    assert r.status_code == 404
    assert r.json() == {"code": 404, "detail": "Graph nope not found"}


def test_single_unknown_shapefile():
    r = make_client().post("/api/single", json={**BODY, "destinationPointsetId": "nope"})
    assert r.status_code == 404
    assert r.json()["detail"] == "Shapefile nope not found"


def test_single_invalid_body():
    r = make_client().post("/api/single", json={"graphId": "default"})
    assert r.status_code == 400
    assert r.json()["code"] == 400


def test_tile():
    store = ResultStore()
    client = make_client(store)
    key_a = client.post("/api/single", json=BODY).json()["key"]
    key_b = client.post("/api/single", json=BODY).json()["key"]

    assert client.get(f"/tile/single/{key_a}/10/301/385.png").status_code == 204
    assert client.get(f"/tile/single/{key_a}/{key_b}/10/301/385.png").status_code == 204
    assert client.get("/tile/single/missing/10/301/385.png").status_code == 404
