from tests.helpers import auth

CATEGORY = {"name": "Türev", "description": "Türev ve uygulamaları", "subject": "matematik", "grade": 11}


def create_category(client, admin, **overrides):
    body = dict(CATEGORY, **overrides)
    response = client.post("/api/categories", json=body, headers=auth(admin))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_with_defaults(client, admin):
    category = create_category(client, admin)

    assert category["grade"] == "11"
    assert category["color"] == "#3b82f6"
    assert category["icon"] == "book"
    assert category["isActive"] is True
    assert category["createdBy"] == admin["user"]["id"]


def test_admin_only(client, user):
    response = client.post("/api/categories", json=CATEGORY, headers=auth(user))

    assert response.status_code == 403


def test_duplicate_name_ignores_case(client, admin):
    create_category(client, admin)

    response = client.post("/api/categories", json=dict(CATEGORY, name="TÜREV"), headers=auth(admin))

    assert response.status_code == 409


def test_validation(client, admin):
    bad_color = client.post("/api/categories", json=dict(CATEGORY, color="blue"), headers=auth(admin))
    bad_grade = client.post("/api/categories", json=dict(CATEGORY, grade="mezun"), headers=auth(admin))
    long_name = client.post("/api/categories", json=dict(CATEGORY, name="x" * 51), headers=auth(admin))

    assert bad_color.status_code == bad_grade.status_code == long_name.status_code == 422


def test_list_sorted_by_name_and_soft_delete(client, admin):
    kimya = create_category(client, admin, name="Kimyasal Tepkimeler", subject="kimya")
    fizik = create_category(client, admin, name="Elektrik", subject="fizik")

    names = [c["name"] for c in client.get("/api/categories").json()["data"]]
    assert names == ["Elektrik", "Kimyasal Tepkimeler"]

    assert client.delete(f"/api/categories/{kimya['id']}", headers=auth(admin)).status_code == 200
    remaining = [c["id"] for c in client.get("/api/categories").json()["data"]]
    assert remaining == [fizik["id"]]
    assert client.get(f"/api/categories/{kimya['id']}").status_code == 404


def test_update(client, admin):
    category = create_category(client, admin)
    create_category(client, admin, name="Limit")

    renamed = client.put(
        f"/api/categories/{category['id']}", json={"name": "Türev Kuralları", "color": "#10b981"}, headers=auth(admin)
    )
    clash = client.put(f"/api/categories/{category['id']}", json={"name": "limit"}, headers=auth(admin))

    assert renamed.status_code == 200
    assert renamed.json()["data"]["name"] == "Türev Kuralları"
    assert renamed.json()["data"]["color"] == "#10b981"
    assert clash.status_code == 409
    assert client.put("/api/categories/999", json={"icon": "atom"}, headers=auth(admin)).status_code == 404
