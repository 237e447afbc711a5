import io

import pytest

from conftest import BASE_URL, PLACEHOLDER, upload_path


def create(client, **data):
    resp = client.post("/api/products", data=data)
    assert resp.status_code == 201, resp.text
    return resp.json()["product"]


def test_create_and_get_product(client):
    resp = client.post("/api/products", data={"name": "Linen", "price": "12.5", "tags": "eco, natural", "gsm": "150"})
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["success"] is True
    product = body["product"]
    assert product["price"] == pytest.approx(12.5)
    assert product["tags"] == ["eco", "natural"]
    assert product["specifications"]["gsm"] == "150"
    assert product["image"] == PLACEHOLDER

    resp = client.get(f"/api/products/{product['id']}")
    assert resp.status_code == 200, resp.text
    assert resp.json()["product"] == product


def test_create_accepts_json_body(client):
    payload = {
        "name": "Twill",
        "price": 8,
        "mainCategory": "Fabrics",
        "tags": ["workwear", " heavy "],
        "specifications": {"weave": "twill", "gsm": 280},
    }
    resp = client.post("/api/products", json=payload)
    assert resp.status_code == 201, resp.text
    product = resp.json()["product"]
    assert product["category"] == "Fabrics"
    assert product["tags"] == ["workwear", "heavy"]
    assert product["specifications"]["gsm"] == "280"


def test_repeated_tag_fields_form_a_list(client):
    resp = client.post("/api/products", data={"name": "Lawn", "tags": ["a", "b"]})
    assert resp.status_code == 201, resp.text
    assert resp.json()["product"]["tags"] == ["a", "b"]


def test_create_without_name_is_rejected(client):
    resp = client.post("/api/products", data={"price": "3"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "name" in body["message"]
    assert client.get("/api/products").json()["count"] == 0


def test_list_products_in_insertion_order(client):
    ids = [create(client, name=n)["id"] for n in ("A", "B", "C")]
    body = client.get("/api/products").json()
    assert body["success"] is True
    assert body["count"] == 3
    assert [p["id"] for p in body["data"]] == ids


def test_upload_update_and_delete_image_flow(client, settings, make_sample_jpeg_bytes):
    files = {"image": ("test.jpg", io.BytesIO(make_sample_jpeg_bytes()), "image/jpeg")}
    resp = client.post("/api/products", data={"name": "Satin"}, files=files)
    assert resp.status_code == 201, resp.text
    product = resp.json()["product"]
    assert product["image"].startswith(f"{BASE_URL}/uploads/product-")
    reference = product["image"][len(BASE_URL):]
    old_file = upload_path(settings.UPLOADS_DIR, reference)
    assert old_file.exists()

    # uploaded file is served under /uploads
    served = client.get(reference)
    assert served.status_code == 200
    assert served.content == old_file.read_bytes()

    files = {"image": ("new.png", io.BytesIO(make_sample_jpeg_bytes(color=(1, 2, 3))), "image/png")}
    resp = client.put(f"/api/products/{product['id']}", data={"price": "30"}, files=files)
    assert resp.status_code == 200, resp.text
    updated = resp.json()["product"]
    assert updated["price"] == 30.0
    assert updated["name"] == "Satin"
    assert updated["image"] != product["image"]
    assert not old_file.exists()
    new_file = upload_path(settings.UPLOADS_DIR, updated["image"][len(BASE_URL):])
    assert new_file.exists()

    resp = client.delete(f"/api/products/{product['id']}")
    assert resp.status_code == 200, resp.text
    assert resp.json() == {"success": True, "message": "Product deleted successfully", "deletedId": product["id"]}
    assert not new_file.exists()


def test_non_image_upload_is_rejected(client):
    files = {"image": ("notes.txt", io.BytesIO(b"hello"), "text/plain")}
    resp = client.post("/api/products", data={"name": "Doc"}, files=files)
    assert resp.status_code == 415
    assert resp.json()["success"] is False
    assert client.get("/api/products").json()["count"] == 0


def test_oversized_upload_is_rejected(client, app):
    app.state.store.images.max_bytes = 16
    files = {"image": ("big.jpg", io.BytesIO(b"x" * 17), "image/jpeg")}
    resp = client.post("/api/products", data={"name": "Big"}, files=files)
    assert resp.status_code == 413
    assert resp.json()["error"] == "File too large"


def test_malformed_price_is_rejected(client):
    resp = client.post("/api/products", data={"name": "Voile", "price": "cheap"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_unknown_product_id_returns_404(client, method):
    kwargs = {"data": {"name": "x"}} if method == "put" else {}
    resp = getattr(client, method)("/api/products/prod-missing", **kwargs)
    assert resp.status_code == 404
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Product not found"
    assert body["id"] == "prod-missing"


def test_unknown_route_returns_endpoint_list(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    body = resp.json()
    assert body["requestedUrl"] == "/api/nothing-here"
    assert "GET /api/products" in body["availableEndpoints"]


def test_health_and_root(client):
    create(client, name="Chiffon")
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "OK"
    assert body["productsCount"] == 1
    assert body["persistence"] == "ok"

    root = client.get("/").json()
    assert root["success"] is True
    assert "createProduct" in root["endpoints"]


def test_products_survive_restart(settings, make_sample_jpeg_bytes):
    from fastapi.testclient import TestClient
    from catalog.main import create_app

    with TestClient(create_app(settings)) as c:
        product = c.post("/api/products", data={"name": "Organza", "tags": "sheer"}).json()["product"]

    assert settings.products_path.exists()
    with TestClient(create_app(settings)) as c:
        resp = c.get(f"/api/products/{product['id']}")
        assert resp.status_code == 200
        assert resp.json()["product"]["tags"] == ["sheer"]


def test_json_body_that_is_not_utf8_is_rejected(client):
    resp = client.post(
        "/api/products",
        content=b'{"name": "\xff"}',
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert client.get("/api/products").json()["count"] == 0


@pytest.mark.parametrize("price", [True, False, [1], {"amount": 1}])
def test_non_numeric_json_price_is_rejected(client, price):
    resp = client.post("/api/products", json={"name": "Poplin", "price": price})
    assert resp.status_code == 400, resp.text
    assert resp.json()["success"] is False
    assert client.get("/api/products").json()["count"] == 0


def test_svg_upload_is_rejected(client):
    svg = b'<svg xmlns="http://www.w3.org/2000/svg"><script>alert(1)</script></svg>'
    files = {"image": ("logo.svg", io.BytesIO(svg), "image/svg+xml")}
    resp = client.post("/api/products", data={"name": "Logo"}, files=files)
    assert resp.status_code == 415
    assert client.get("/api/products").json()["count"] == 0
