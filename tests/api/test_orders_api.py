"""HTTP tests for /orders, order images and the due-date dashboard."""

import json

import pytest

PNG = b"\x89PNG\r\n\x1a\nsample"
WEBP = b"RIFF\x00\x00\x00\x00WEBPsample"


@pytest.fixture
def customer_id(make_customer):
    return make_customer("Farah Khan")


def _payload(customer_id, **overrides):
    body = {
        "customer_id": customer_id,
        "items": [
            {"description": "Blouse", "quantity": 2, "price": 100, "work_type": "HAND_WORK"},
            {"description": "Saree fall", "quantity": 1, "price": 50},
        ],
        "advance_amount": 100,
        "notes": "Deliver before Diwali",
        "due_date": "2026-11-05",
    }
    body.update(overrides)
    return body


def _create(client, customer_id, files=None, **overrides):
    response = client.post(
        "/orders",
        data={"data": json.dumps(_payload(customer_id, **overrides))},
        files=files,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateOrder:

    def test_totals_and_status(self, client, customer_id):
        order = _create(client, customer_id)

        assert order["total_amount"] == 250
        assert order["remaining_due"] == 150
        assert order["status"] == "PENDING"
        assert order["customer_name"] == "Farah Khan"
        assert [i["work_type"] for i in order["items"]] == ["HAND_WORK", "SIMPLE_WORK"]

    def test_full_advance_is_paid(self, client, customer_id):
        order = _create(client, customer_id, advance_amount=300)
        assert order["status"] == "PAID"
        assert order["remaining_due"] == -50

    def test_with_images(self, client, customer_id):
        order = _create(
            client,
            customer_id,
            files=[
                ("images", ("front.png", PNG, "image/png")),
                ("images", ("back.webp", WEBP, "image/webp")),
            ],
        )

        assert len(order["images"]) == 2
        served = client.get(f"/orders/{order['id']}/images/{order['images'][0]['id']}")
        assert served.content == PNG

    def test_every_item_violation_reported(self, client, customer_id):
        items = [
            {"description": "", "quantity": 1, "price": 10},
            {"description": "Kurta", "quantity": 0, "price": -5},
        ]
        response = client.post(
            "/orders", data={"data": json.dumps(_payload(customer_id, items=items))}
        )

        assert response.status_code == 400
        fields = {d["field"] for d in response.json()["details"]}
        assert fields == {"items.0.description", "items.1.quantity", "items.1.price"}

    def test_empty_items_rejected(self, client, customer_id):
        response = client.post(
            "/orders", data={"data": json.dumps(_payload(customer_id, items=[]))}
        )
        assert response.status_code == 400

    def test_malformed_json(self, client):
        response = client.post("/orders", data={"data": "{not json"})
        assert response.status_code == 400
        assert response.json()["reason"] == "validation_error"

    def test_missing_data_field(self, client):
        response = client.post("/orders", data={})
        assert response.status_code == 400

    def test_unknown_customer(self, client):
        response = client.post("/orders", data={"data": json.dumps(_payload(404))})
        assert response.status_code == 404
        assert response.json()["error"] == "Customer not found"

    def test_gif_rejected(self, client, customer_id):
        response = client.post(
            "/orders",
            data={"data": json.dumps(_payload(customer_id))},
            files=[("images", ("anim.gif", b"GIF89a", "image/gif"))],
        )
        assert response.status_code == 400
        assert response.json()["reason"] == "invalid_type"
        assert client.get("/orders").json()["pagination"]["total"] == 0


class TestReadOrders:

    def test_get(self, client, customer_id):
        order = _create(client, customer_id)
        assert client.get(f"/orders/{order['id']}").json() == order

    def test_get_missing(self, client):
        assert client.get("/orders/321").status_code == 404

    def test_list_with_status_filter(self, client, customer_id):
        pending = _create(client, customer_id)
        _create(client, customer_id, advance_amount=1000)

        body = client.get("/orders", params={"status": "PENDING"}).json()

        assert [o["id"] for o in body["orders"]] == [pending["id"]]
        assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "total_pages": 1}

    def test_invalid_status_filter(self, client):
        assert client.get("/orders", params={"status": "SHIPPED"}).status_code == 400


class TestUpdateOrder:

    def test_replace_items(self, client, customer_id):
        order = _create(client, customer_id)
        edit = {"items": [{"description": "Lehenga alteration", "quantity": 3, "price": 40}]}

        response = client.put(f"/orders/{order['id']}", data={"data": json.dumps(edit)})

        assert response.status_code == 200
        updated = response.json()
        assert updated["total_amount"] == 120
        assert updated["remaining_due"] == 20
        assert len(updated["items"]) == 1
        assert updated["notes"] == order["notes"]

    def test_keep_list_and_new_images(self, client, customer_id):
        order = _create(
            client,
            customer_id,
            files=[("images", ("a.png", PNG, "image/png")), ("images", ("b.png", PNG, "image/png"))],
        )
        keep, drop = [image["id"] for image in order["images"]]

        response = client.put(
            f"/orders/{order['id']}",
            data={"data": json.dumps({"keep_image_ids": [keep]})},
            files=[("images", ("c.webp", WEBP, "image/webp"))],
        )

        ids = [image["id"] for image in response.json()["images"]]
        assert keep in ids and drop not in ids and len(ids) == 2
        assert client.get(f"/orders/{order['id']}/images/{drop}").status_code == 404

    def test_edit_without_keep_list_clears_images(self, client, customer_id):
        order = _create(client, customer_id, files=[("images", ("a.png", PNG, "image/png"))])
        image_id = order["images"][0]["id"]
        edit = {"items": [{"description": "Sleeve shortening", "quantity": 1, "price": 60}]}

        response = client.put(f"/orders/{order['id']}", data={"data": json.dumps(edit)})

        assert response.status_code == 200
        assert response.json()["images"] == []
        assert client.get(f"/orders/{order['id']}/images/{image_id}").status_code == 404

    def test_invalid_item_changes_nothing(self, client, customer_id):
        order = _create(client, customer_id)
        edit = {
            "notes": "new notes",
            "items": [
                {"description": "A", "quantity": 1, "price": 10},
                {"description": "B", "quantity": 1, "price": 10},
                {"description": "C", "quantity": 1, "price": 0},
                {"description": "D", "quantity": 1, "price": 10},
            ],
        }

        response = client.put(f"/orders/{order['id']}", data={"data": json.dumps(edit)})

        assert response.status_code == 400
        assert client.get(f"/orders/{order['id']}").json() == order

    def test_missing_order(self, client):
        response = client.put("/orders/55", data={"data": json.dumps({"notes": "x"})})
        assert response.status_code == 404


class TestDeleteOrder:

    def test_delete_cascades(self, client, customer_id):
        order = _create(client, customer_id, files=[("images", ("a.png", PNG, "image/png"))])
        image_id = order["images"][0]["id"]

        assert client.delete(f"/orders/{order['id']}").status_code == 204
        assert client.get(f"/orders/{order['id']}").status_code == 404
        assert client.get(f"/orders/{order['id']}/images/{image_id}").status_code == 404
        assert client.delete(f"/orders/{order['id']}").status_code == 404

    def test_customer_deletable_afterwards(self, client, customer_id):
        order = _create(client, customer_id)
        client.delete(f"/orders/{order['id']}")
        assert client.delete(f"/customers/{customer_id}").status_code == 204


class TestStatusEndpoints:

    def test_update_status(self, client, customer_id):
        order = _create(client, customer_id)
        response = client.patch(f"/orders/{order['id']}/status", json={"status": "CANCELLED"})

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"

    def test_update_status_rejects_unknown(self, client, customer_id):
        order = _create(client, customer_id)
        response = client.patch(f"/orders/{order['id']}/status", json={"status": "DONE"})
        assert response.status_code == 400

    def test_mark_as_paid(self, client, customer_id):
        order = _create(client, customer_id)
        response = client.patch(
            f"/orders/{order['id']}/mark-as-paid", json={"payment_method": "UPI"}
        )

        body = response.json()
        assert body["status"] == "PAID"
        assert body["payment_method"] == "UPI"
        assert body["total_amount"] == order["total_amount"]

    def test_mark_as_paid_requires_known_method(self, client, customer_id):
        order = _create(client, customer_id)
        response = client.patch(
            f"/orders/{order['id']}/mark-as-paid", json={"payment_method": "CHEQUE"}
        )
        assert response.status_code == 400

    def test_mark_as_paid_missing_order(self, client):
        response = client.patch("/orders/9/mark-as-paid", json={"payment_method": "CASH"})
        assert response.status_code == 404


class TestOrderImageEndpoints:

    def test_upload_and_list(self, client, customer_id):
        order = _create(client, customer_id)

        response = client.post(
            f"/orders/{order['id']}/images",
            files=[("images", ("a.png", PNG, "image/png")), ("images", ("b.webp", WEBP, "image/webp"))],
        )

        assert response.status_code == 201
        assert len(response.json()) == 2
        assert len(client.get(f"/orders/{order['id']}/images").json()) == 2

    def test_cap_from_settings(self, client, customer_id):
        order = _create(client, customer_id)
        files = [("images", (f"{n}.png", PNG, "image/png")) for n in range(3)]
        assert client.post(f"/orders/{order['id']}/images", files=files).status_code == 201

        response = client.post(
            f"/orders/{order['id']}/images", files=[("images", ("x.png", PNG, "image/png"))]
        )

        assert response.status_code == 400
        assert response.json()["reason"] == "limit_exceeded"

    def test_cross_order_access(self, client, customer_id):
        first = _create(client, customer_id, files=[("images", ("a.png", PNG, "image/png"))])
        second = _create(client, customer_id)
        image_id = first["images"][0]["id"]

        assert client.get(f"/orders/{second['id']}/images/{image_id}").status_code == 404
        assert client.delete(f"/orders/{second['id']}/images/{image_id}").status_code == 404
        assert client.delete(f"/orders/{first['id']}/images/{image_id}").status_code == 204


class TestDueDashboard:

    def test_buckets(self, client, customer_id):
        soon = _create(client, customer_id, due_date="2026-03-11")
        later = _create(client, customer_id, due_date="2026-03-18")
        _create(client, customer_id, due_date="2026-03-11", advance_amount=999)

        body = client.get("/dashboard/orders", params={"as_of": "2026-03-10"}).json()

        assert body["as_of"] == "2026-03-10"
        assert [o["id"] for o in body["due_in_1_day"]] == [soon["id"]]
        assert body["due_in_5_days"] == []
        assert [o["id"] for o in body["due_in_10_days"]] == [later["id"]]
        assert [o["id"] for o in body["all_pending"]] == [soon["id"], later["id"]]

    def test_defaults_to_today(self, client):
        response = client.get("/dashboard/orders")
        assert response.status_code == 200
        assert response.json()["all_pending"] == []


class TestIdBounds:

    def test_oversized_path_id_is_a_validation_error(self, client):
        response = client.get("/orders/99999999999999999999")

        assert response.status_code == 400
        assert response.json()["reason"] == "validation_error"
        assert [d["field"] for d in response.json()["details"]] == ["order_id"]

    def test_zero_id_rejected(self, client):
        assert client.delete("/orders/0").status_code == 400

    def test_largest_storable_id_is_just_missing(self, client):
        assert client.get("/orders/9223372036854775807").status_code == 404

    def test_oversized_customer_in_body(self, client):
        payload = _payload(2**63)
        response = client.post("/orders", data={"data": json.dumps(payload)})

        assert response.status_code == 400
        assert [d["field"] for d in response.json()["details"]] == ["customer_id"]
