"""
HTTP-level tests driven through FastAPI's TestClient.
"""

import asyncio
import base64

from conftest import product_payload, seller_payload


def _register(client, admin_headers, approve=True, **overrides):
    resp = client.post("/sellers", json=seller_payload(**overrides))
    assert resp.status_code == 201
    seller = resp.json()
    if approve:
        resp = client.patch(f"/admin/sellers/{seller['user_id']}/status", json={"status": "APPROVED"}, headers=admin_headers)
        assert resp.status_code == 200
        seller = resp.json()
    return seller


def _create_product(client, seller_id, **overrides):
    resp = client.post(f"/sellers/{seller_id}/products", json=product_payload(**overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestHealth:
    def test_root(self, client):
        assert client.get("/").json() == {"message": "PartsHub API is running"}

    def test_store_report(self, client):
        body = client.get("/test").json()
        assert body["collections"]["product"] == 0
        assert body["ai_configured"] is True

    def test_reference(self, client):
        body = client.get("/reference").json()
        assert "Body Parts" in body["categories"]
        assert "Toyota" in body["makes"]


class TestSellersApi:
    def test_register_pending(self, client):
        resp = client.post("/sellers", json=seller_payload())
        assert resp.status_code == 201
        assert resp.json()["status"] == "PENDING_APPROVAL"

    def test_register_requires_fields(self, client):
        resp = client.post("/sellers", json=seller_payload(business_name="   "))
        assert resp.status_code == 422

    def test_invalid_id_format(self, client):
        assert client.get("/sellers/not-an-id").status_code == 400

    def test_unknown_seller(self, client):
        resp = client.get(f"/sellers/{'0' * 24}")
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"

    def test_admin_key_required(self, client):
        seller = client.post("/sellers", json=seller_payload()).json()
        resp = client.patch(f"/admin/sellers/{seller['user_id']}/status", json={"status": "APPROVED"})
        assert resp.status_code == 401
        resp = client.patch(
            f"/admin/sellers/{seller['user_id']}/status", json={"status": "APPROVED"}, headers={"X-Admin-Key": "nope"}
        )
        assert resp.status_code == 401

    def test_invalid_transition(self, client, admin_headers):
        seller = client.post("/sellers", json=seller_payload()).json()
        resp = client.patch(f"/admin/sellers/{seller['user_id']}/status", json={"status": "DISABLED"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_transition"

    def test_admin_list_by_status(self, client, admin_headers):
        _register(client, admin_headers)
        _register(client, admin_headers, approve=False, business_name="Waiting Yard")
        resp = client.get("/admin/sellers", params={"status": "PENDING_APPROVAL"}, headers=admin_headers)
        assert [s["business_name"] for s in resp.json()] == ["Waiting Yard"]

    def test_profile_update(self, client, admin_headers):
        seller = _register(client, admin_headers)
        resp = client.patch(f"/sellers/{seller['user_id']}", json={"whatsapp_enabled": False})
        assert resp.status_code == 200
        assert resp.json()["whatsapp_enabled"] is False
        assert resp.json()["status"] == "APPROVED"


class TestCatalogApi:
    def test_missing_media(self, client, admin_headers):
        seller = _register(client, admin_headers)
        resp = client.post(f"/sellers/{seller['user_id']}/products", json=product_payload(images=[]))
        assert resp.status_code == 400
        assert resp.json()["code"] == "missing_media"
        assert client.get(f"/sellers/{seller['user_id']}/products").json() == []

    def test_negative_price_rejected(self, client, admin_headers):
        seller = _register(client, admin_headers)
        resp = client.post(f"/sellers/{seller['user_id']}/products", json=product_payload(price=-1))
        assert resp.status_code == 422

    def test_filter_make_and_year(self, client, admin_headers):
        sid = _register(client, admin_headers)["user_id"]
        hit = _create_product(client, sid)
        _create_product(client, sid, model="Corolla", year_start=2000, year_end=2008)
        _create_product(client, sid, make="Ford", model="Ranger")

        resp = client.get("/products", params={"make": "Toyota", "year": 2021})
        assert [p["id"] for p in resp.json()] == [hit["id"]]

    def test_sort_by_price(self, client, admin_headers):
        sid = _register(client, admin_headers)["user_id"]
        _create_product(client, sid, price=300)
        _create_product(client, sid, price=100)
        prices = [p["price"] for p in client.get("/products", params={"sort": "price_asc"}).json()]
        assert prices == [100, 300]

    def test_models_endpoint(self, client, admin_headers):
        sid = _register(client, admin_headers)["user_id"]
        _create_product(client, sid)
        _create_product(client, sid, model="Fortuner")
        assert client.get("/products/models", params={"make": "Toyota"}).json() == ["Fortuner", "Hilux"]

    def test_disable_hides_listing(self, client, admin_headers):
        sid = _register(client, admin_headers)["user_id"]
        product = _create_product(client, sid)
        assert client.get(f"/products/{product['id']}").status_code == 200

        client.patch(f"/admin/sellers/{sid}/status", json={"status": "DISABLED"}, headers=admin_headers)
        assert client.get("/products").json() == []
        assert client.get(f"/products/{product['id']}").status_code == 404
        assert len(client.get(f"/sellers/{sid}/products").json()) == 1

    def test_update_and_delete(self, client, admin_headers):
        sid = _register(client, admin_headers)["user_id"]
        product = _create_product(client, sid)
        resp = client.patch(f"/products/{product['id']}", json={"status": "SOLD"})
        assert resp.json()["status"] == "SOLD"
        assert client.get("/products").json() == []

        assert client.delete(f"/products/{product['id']}").json() == {"ok": True}
        assert client.delete(f"/products/{product['id']}").status_code == 404

    def test_csv_import(self, client, admin_headers):
        sid = _register(client, admin_headers)["user_id"]
        csv_text = "name,price,make,model,category,year\nStarter Motor,850,Nissan,Navara,Electrical Systems,2014\n"
        resp = client.post(
            f"/sellers/{sid}/products/import", content=csv_text.encode(), headers={"Content-Type": "text/csv"}
        )
        assert resp.status_code == 201
        created = resp.json()
        assert created[0]["sku"].startswith("NIS-")
        assert created[0]["year_end"] == 2024
        assert created[0]["location"] == "Johannesburg"


class TestEnquiryApi:
    def test_enquiry_and_metrics(self, client, admin_headers):
        sid = _register(client, admin_headers)["user_id"]
        product = _create_product(client, sid)
        resp = client.post("/enquiries", json={
            "product_id": product["id"],
            "seller_id": sid,
            "buyer_name": "WhatsApp Visitor",
            "message": "User initiated WhatsApp conversation",
            "channel": "DIRECT_CONTACT",
        })
        assert resp.status_code == 201
        ref = resp.json()["reference_id"]
        assert ref.startswith("REF-")

        enquiries = client.get(f"/sellers/{sid}/enquiries").json()
        assert [e["id"] for e in enquiries] == [ref]
        metrics = client.get(f"/sellers/{sid}/metrics").json()
        assert metrics["direct_contact_leads"] == 1
        assert metrics["new_enquiries"] == 1

        assert client.post(f"/enquiries/{ref}/reply").json()["status"] == "Replied"


class TestCheckoutApi:
    customer = {"name": "Ayanda", "phone": "0831234567", "email": "ayanda@example.com"}

    def test_checkout_flow(self, client, admin_headers):
        sid = _register(client, admin_headers)["user_id"]
        product = _create_product(client, sid, quantity=1, price=4500)
        cart = client.post("/carts").json()

        summary = client.post(f"/carts/{cart['id']}/items", json={"product_id": product["id"], "quantity": 1}).json()
        assert summary["subtotal"] == 4500

        resp = client.post(f"/carts/{cart['id']}/checkout", json={
            "customer": self.customer,
            "is_collection": False,
            "delivery_address": "5 Jan Smuts Ave, Johannesburg",
        })
        assert resp.status_code == 201
        order = resp.json()
        assert order["id"].startswith("SPF-")
        assert order["status"] == "PAID"
        assert order["items"][0]["price"] == 4500

        listing = client.get(f"/products/{product['id']}").json()
        assert listing["quantity"] == 0
        assert listing["status"] == "OUT_OF_STOCK"
        assert client.get(f"/carts/{cart['id']}").json()["items"] == []
        assert client.get(f"/orders/{order['id']}").json()["total"] == 4500
        assert [o["id"] for o in client.get(f"/sellers/{sid}/orders").json()] == [order["id"]]

    def test_empty_cart(self, client):
        cart = client.post("/carts").json()
        resp = client.post(f"/carts/{cart['id']}/checkout", json={"customer": self.customer, "is_collection": True})
        assert resp.status_code == 400
        assert resp.json()["code"] == "empty_cart"

    def test_delivery_requires_address(self, client):
        cart = client.post("/carts").json()
        resp = client.post(f"/carts/{cart['id']}/checkout", json={"customer": self.customer, "is_collection": False})
        assert resp.status_code == 422

    def test_engine_runs_off_event_loop(self, client, market, admin_headers, monkeypatch):
        seen = []

        def record(fn):
            def wrapper(*args):
                try:
                    asyncio.get_running_loop()
                    seen.append((fn.__name__, "loop"))
                except RuntimeError:
                    seen.append((fn.__name__, "worker"))
                return fn(*args)
            return wrapper

        monkeypatch.setattr(market, "checkout", record(market.checkout))
        monkeypatch.setattr(market, "import_products_csv", record(market.import_products_csv))

        sid = _register(client, admin_headers)["user_id"]
        resp = client.post(f"/sellers/{sid}/products/import", content=b"name,price\nAlternator,100\n")
        assert resp.status_code == 201
        cart = client.post("/carts").json()
        client.post(f"/carts/{cart['id']}/items", json={"product_id": resp.json()[0]["id"], "quantity": 1})
        resp = client.post(f"/carts/{cart['id']}/checkout", json={"customer": self.customer, "is_collection": True})
        assert resp.status_code == 201
        assert seen == [("import_products_csv", "worker"), ("checkout", "worker")]

    def test_admin_overview(self, client, admin_headers):
        client.post("/admin/seed", headers=admin_headers)
        body = client.get("/admin/overview", headers=admin_headers).json()
        assert body["sellers"]["APPROVED"] == 3
        assert body["visible_listings"] == body["total_listings"]
        assert body["recent_orders"] == []


class TestMediaApi:
    def test_upload_is_content_addressed(self, client):
        payload = {"content_base64": base64.b64encode(b"\x89PNG fake").decode(), "mime_type": "image/png"}
        first = client.post("/media", json=payload).json()["ref"]
        second = client.post("/media", json=payload).json()["ref"]
        assert first == second
        assert first.startswith("sha256:")

        resp = client.get(f"/media/{first}")
        assert resp.content == b"\x89PNG fake"
        assert resp.headers["content-type"] == "image/png"

    def test_rejects_bad_upload(self, client):
        assert client.post("/media", json={"content_base64": "***"}).status_code == 400
        too_big = base64.b64encode(b"x" * 2048).decode()
        assert client.post("/media", json={"content_base64": too_big}).status_code == 400
        assert client.get("/media/sha256:missing").status_code == 404


class TestAiApi:
    def test_vin_decode_fills_draft(self, client, gemini):
        gemini.reply_json({"make": "Toyota", "model": "Hilux", "year": 2019})
        resp = client.post("/ai/vin-decode", json={"vin": "ahtfr22g406012345", "draft": {"name": "Bonnet"}})
        body = resp.json()
        assert body["applied"] is True
        assert body["draft"]["name"] == "2019 Toyota Hilux Bonnet"
        assert body["draft"]["year_start"] == 2019
        assert body["draft"]["vin"] == "AHTFR22G406012345"

    def test_vin_decode_failure_leaves_draft(self, client, gemini):
        gemini.reply_text("not json")
        draft = {"name": "Bonnet", "make": "Ford", "model": "", "category": "", "year_start": None, "year_end": None, "vin": None}
        body = client.post("/ai/vin-decode", json={"vin": "AHTFR22G406012345", "draft": draft}).json()
        assert body["applied"] is False
        assert body["draft"] == draft
        assert body["notice"] == "Unable to decode VIN. Enter details manually."

    def test_vin_decode_odd_envelope(self, client, gemini):
        gemini.reply_body([{"candidates": []}])
        resp = client.post("/ai/vin-decode", json={"vin": "AHTFR22G406012345", "draft": {"name": "Bonnet"}})
        assert resp.status_code == 200
        assert resp.json()["applied"] is False
        assert resp.json()["draft"]["name"] == "Bonnet"

    def test_identify_part_bad_field_type(self, client, gemini):
        gemini.reply_json({"name": ["Alternator"]})
        body = client.post("/ai/identify-part", json={"image_base64": "aGVsbG8="}).json()
        assert body["applied"] is False
        assert body["notice"] == "AI Analysis failed. Please try a clearer photo."

    def test_seo_post_bad_title_is_502(self, client, gemini, admin_headers):
        gemini.reply_json({"title": {"x": 1}, "content": "body"})
        resp = client.post("/admin/blog-posts/generate", json={"keyword": "hilux"}, headers=admin_headers)
        assert resp.status_code == 502
        assert resp.json()["code"] == "external_service_error"
        assert client.get("/blog-posts").json() == []

    def test_short_vin(self, client, gemini):
        resp = client.post("/ai/vin-decode", json={"vin": "ABC"})
        assert resp.status_code == 400
        assert gemini.requests == []

    def test_identify_part(self, client, gemini):
        gemini.reply_json({"name": "Alternator", "make": "BMW", "model": "M3", "category": "Electrical Systems"})
        body = client.post("/ai/identify-part", json={"image_base64": "aGVsbG8="}).json()
        assert body["applied"] is True
        assert body["draft"]["category"] == "Electrical Systems"

    def test_seo_post(self, client, gemini, admin_headers):
        gemini.reply_json({"title": "Best Hilux Parts", "content": "Lots of words", "keywords": ["hilux"]})
        resp = client.post("/admin/blog-posts/generate", json={"keyword": "hilux parts"}, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json()["slug"] == "best-hilux-parts"
        assert [p["title"] for p in client.get("/blog-posts").json()] == ["Best Hilux Parts"]

    def test_seo_failure_is_502(self, client, admin_headers):
        resp = client.post("/admin/blog-posts/generate", json={"keyword": "hilux"}, headers=admin_headers)
        assert resp.status_code == 502
        assert client.get("/blog-posts").json() == []
