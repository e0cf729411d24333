from printshop.core.security import issue_token_pair


def test_health(api):
    r = api.get("/health")
    assert r.status_code == 200


def test_register_login_and_me(api):
    r = api.post("/auth/register", json={"email": "dueno@test.com", "password": "secret", "role": "lector"})
    assert r.status_code == 200
    assert "access_token" in r.json()

    r = api.post("/auth/login", json={"email": "dueno@test.com", "password": "secret"})
    assert r.status_code == 200
    access = r.json()["access_token"]

    r = api.get("/auth/me", headers={"Authorization": f"Bearer {access}"})
    assert r.status_code == 200
    # El primer usuario siempre queda como dueño
    assert r.json()["role"] == "owner"

    r = api.post("/auth/login", json={"email": "dueno@test.com", "password": "wrong"})
    assert r.status_code == 401


def test_requires_token(api):
    assert api.get("/orders/").status_code == 401


def test_order_flow(api, owner, auth_headers):
    headers = auth_headers(owner)
    roll = api.post("/inventory/", json={"name": "PLA Negro", "type": "Filamento", "stock_grams": 1000}, headers=headers).json()
    product = api.post("/products/", json={"name": "Soporte", "base_price": 5000, "weight_grams": 300}, headers=headers).json()

    r = api.post(
        "/orders/",
        json={
            "product_id": product["id"],
            "inventory_id": roll["id"],
            "quantity": 3,
            "custom_client_name": "Pedro",
            "additional_costs": [{"description": "Envío", "amount": 1000}],
            "quoted_grams": 100,
        },
        headers=headers,
    )
    assert r.status_code == 200
    order = r.json()
    assert order["total_sale"] == 16000

    r = api.post(f"/orders/{order['id']}/status", json={"status": "terminado"}, headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] and body["changed"]
    assert body["order"]["status"] == "terminado"

    stock = api.get("/inventory/", headers=headers).json()[0]["stock_grams"]
    assert stock == 100

    history = api.get(f"/status-history/{order['id']}", headers=headers).json()
    assert history[0]["new_status"] == "terminado"

    r = api.get("/export/orders.csv", headers=headers)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "Pedro" in r.text


def test_reader_status_change_is_rolled_back(api, owner, reader, auth_headers):
    product = api.post("/products/", json={"name": "Llavero", "base_price": 3000}, headers=auth_headers(owner)).json()
    order = api.post("/orders/", json={"product_id": product["id"]}, headers=auth_headers(owner)).json()

    r = api.post(f"/orders/{order['id']}/advance", headers=auth_headers(reader))
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is False
    assert body["order"]["status"] == "pendiente"
    assert body["notifications"][0]["level"] == "error"


def test_bad_product_is_400(api, owner, auth_headers):
    r = api.post("/orders/", json={"product_id": "missing"}, headers=auth_headers(owner))
    assert r.status_code == 400


def test_quotation_calculate(api, owner, auth_headers):
    r = api.post(
        "/quotation/calculate",
        json={"grams": 100, "hours": 2, "minutes": 30, "filament_id": "1"},
        headers=auth_headers(owner),
    )
    assert r.status_code == 200
    assert abs(r.json()["result"]["final_price"] - 6806.25) < 1e-6


def test_finance_and_audit(api, owner, operator, auth_headers):
    headers = auth_headers(owner)
    r = api.post("/finance/expenses", json={"category": "luz", "amount": 1000}, headers=headers)
    assert r.status_code == 200
    r = api.post("/finance/income", json={"description": "Venta feria", "price": 5000}, headers=headers)
    assert r.status_code == 200
    assert r.json()["status"] == "terminado"

    summary = api.get("/finance/summary?timeframe=30d", headers=headers).json()
    assert summary["stats"]["income"] == 5000
    assert summary["stats"]["operational_expenses"] == 1000
    assert len(summary["transactions"]) == 2

    logs = api.get("/audit/", headers=headers).json()
    assert {log["action"] for log in logs} == {"CREATE_EXPENSE", "CREATE_INCOME"}
    assert api.get("/audit/", headers=auth_headers(operator)).status_code == 403

    assert api.get("/finance/summary?timeframe=1y", headers=headers).status_code == 400


def test_delete_blocked_by_policy_is_403(api, owner, operator, auth_headers):
    expense = api.post("/finance/expenses", json={"category": "luz", "amount": 10}, headers=auth_headers(owner)).json()
    r = api.delete(f"/finance/transactions/expense/{expense['id']}", headers=auth_headers(operator))
    assert r.status_code == 403
    r = api.delete(f"/finance/transactions/expense/{expense['id']}", headers=auth_headers(owner))
    assert r.status_code == 200


def test_acquisition_with_evidence(api, owner, auth_headers):
    headers = auth_headers(owner)
    r = api.post(
        "/reinvestment/acquisitions",
        data={
            "amount": "15000",
            "capital_source": "investment",
            "new_item_name": "PETG Blanco",
            "new_item_stock_grams": "1000",
        },
        files={"evidence": ("boleta.png", b"\x89PNG fake", "image/png")},
        headers=headers,
    )
    assert r.status_code == 200
    expense = r.json()["expense"]
    assert expense["tags"] == ["Inversión", "Materiales"]
    assert expense["description"] == "Compra de Material Nuevo: PETG Blanco"

    summary = api.get("/reinvestment/summary", headers=headers).json()
    assert summary["investment"] == 15000
    assert summary["history"][0]["evidence_url"].startswith("http://testserver/storage/evidence/")

    items = api.get("/inventory/", headers=headers).json()
    assert items[0]["name"] == "PETG Blanco"


def test_tag_rename_endpoint(api, owner, auth_headers):
    headers = auth_headers(owner)
    api.post("/tags/", json={"name": "Feria"}, headers=headers)
    r = api.post("/tags/rename", json={"old_tag": "Feria", "new_tag": "Expo"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert api.get("/tags/unique", headers=headers).json() == ["Expo"]


def test_self_registration_cannot_pick_role(api):
    api.post("/auth/register", json={"email": "first@test.com", "password": "secret"})
    r = api.post("/auth/register", json={"email": "anon@test.com", "password": "secret", "role": "admin"})
    assert r.status_code == 200

    headers = {"Authorization": f"Bearer {r.json()['access_token']}"}
    assert api.get("/auth/me", headers=headers).json()["role"] == "operador"
    assert api.get("/auth/users", headers=headers).status_code == 403


def test_role_changes_go_through_admin(api, owner, operator, reader, auth_headers):
    r = api.patch(f"/auth/users/{reader.id}/role", json={"role": "admin"}, headers=auth_headers(operator))
    assert r.status_code == 403

    r = api.patch(f"/auth/users/{reader.id}/role", json={"role": "admin"}, headers=auth_headers(owner))
    assert r.status_code == 200
    assert r.json()["role"] == "admin"

    # Un admin no puede ascender a dueño ni tocar al dueño
    r = api.patch(f"/auth/users/{operator.id}/role", json={"role": "owner"}, headers=auth_headers(reader))
    assert r.status_code == 403
    r = api.patch(f"/auth/users/{owner.id}/role", json={"role": "lector"}, headers=auth_headers(reader))
    assert r.status_code == 403

    emails = [u["email"] for u in api.get("/auth/users", headers=auth_headers(owner)).json()]
    assert emails == ["owner@test.com", "operador@test.com", "lector@test.com"]


def test_refresh_rejects_access_token(api, owner):
    access, refresh = issue_token_pair(owner.id)
    assert api.post("/auth/refresh", json={"refresh_token": access}).status_code == 401
    assert api.post("/auth/refresh", json={"refresh_token": refresh}).status_code == 200


def test_tag_rename_by_reader_is_not_ok(api, owner, reader, auth_headers):
    api.post("/tags/", json={"name": "Feria"}, headers=auth_headers(owner))
    r = api.post("/tags/rename", json={"old_tag": "Feria", "new_tag": "Expo"}, headers=auth_headers(reader))
    assert r.status_code == 200
    assert r.json()["ok"] is False
    assert r.json()["notifications"][0]["level"] == "error"
    assert api.get("/tags/unique", headers=auth_headers(owner)).json() == ["Feria"]
