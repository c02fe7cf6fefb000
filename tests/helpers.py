"""Request helpers shared by the API tests"""

PASSWORD = "secret123"

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def auth(data_or_token):
    token = data_or_token if isinstance(data_or_token, str) else data_or_token["token"]
    return {"Authorization": f"Bearer {token}"}


def register(client, name, email, password=PASSWORD):
    response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def login(client, email, password=PASSWORD):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]


def upload_pdf(client, owner, content=PDF_BYTES, filename="turev.pdf"):
    response = client.post(
        "/api/upload",
        files={"file": (filename, content, "application/pdf")},
        headers=auth(owner),
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def note_body(uploaded, **overrides):
    body = {
        "title": "Türev Konu Özeti",
        "description": "Türev kuralları ve çözümlü örnekler",
        "subject": "matematik",
        "grade": "11",
        "tags": ["türev", "limit"],
        "fileUrl": uploaded["fileUrl"],
        "fileName": uploaded["fileName"],
        "fileSize": uploaded["fileSize"],
    }
    body.update(overrides)
    return body


def create_note(client, owner, **overrides):
    uploaded = upload_pdf(client, owner)
    response = client.post("/api/notes", json=note_body(uploaded, **overrides), headers=auth(owner))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def approve(client, admin, note_id, approved=True):
    response = client.put(
        f"/api/notes/{note_id}/approval", json={"isApproved": approved}, headers=auth(admin)
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]
