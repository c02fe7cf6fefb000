from datetime import datetime

from allone.models.upload import StoredFile
from tests.helpers import approve, auth, create_note, note_body, upload_pdf


def list_ids(client, headers=None, **params):
    response = client.get("/api/notes", params=params, headers=headers or {})
    assert response.status_code == 200, response.text
    return [note["id"] for note in response.json()["data"]]


class TestCreate:
    def test_new_note_waits_for_approval(self, client, user):
        uploaded = upload_pdf(client, user)
        response = client.post("/api/notes", json=note_body(uploaded), headers=auth(user))

        assert response.status_code == 201
        note = response.json()["data"]
        assert note["isApproved"] is False
        assert note["isActive"] is True
        assert note["downloads"] == note["viewCount"] == note["rating"] == note["ratingCount"] == 0
        assert note["averageRating"] == 0
        assert note["fileName"] == uploaded["fileName"]
        assert note["fileUrl"] == uploaded["fileUrl"]
        assert note["fileSize"] == uploaded["fileSize"]
        assert note["author"]["id"] == user["user"]["id"]
        assert note["tags"] == ["türev", "limit"]

    def test_requires_authentication(self, client, user):
        uploaded = upload_pdf(client, user)

        response = client.post("/api/notes", json=note_body(uploaded))

        assert response.status_code == 401

    def test_rejects_unknown_subject(self, client, user):
        uploaded = upload_pdf(client, user)

        response = client.post("/api/notes", json=note_body(uploaded, subject="astronomi"), headers=auth(user))

        assert response.status_code == 422

    def test_rejects_short_title_and_long_tags(self, client, user):
        uploaded = upload_pdf(client, user)

        short = client.post("/api/notes", json=note_body(uploaded, title="abc"), headers=auth(user))
        long_tag = client.post("/api/notes", json=note_body(uploaded, tags=["x" * 31]), headers=auth(user))

        assert short.status_code == 422
        assert long_tag.status_code == 422

    def test_grade_accepts_numbers_and_mezun(self, client, user):
        assert create_note(client, user, grade=9)["grade"] == "9"
        assert create_note(client, user, grade="mezun")["grade"] == "mezun"

    def test_file_must_be_own_pending_upload(self, client, user, other_user):
        theirs = upload_pdf(client, other_user)
        stolen = client.post("/api/notes", json=note_body(theirs), headers=auth(user))
        assert stolen.status_code == 422

        made_up = client.post(
            "/api/notes", json=note_body(theirs, fileName="note-1-deadbeef.pdf"), headers=auth(user)
        )
        assert made_up.status_code == 422

        mine = upload_pdf(client, user)
        assert client.post("/api/notes", json=note_body(mine), headers=auth(user)).status_code == 201
        reused = client.post("/api/notes", json=note_body(mine), headers=auth(user))
        assert reused.status_code == 422

    def test_tags_must_be_strings(self, client, user):
        uploaded = upload_pdf(client, user)

        for tags in ([123], 5, {"konu": "türev"}):
            response = client.post("/api/notes", json=note_body(uploaded, tags=tags), headers=auth(user))

            assert response.status_code == 422, tags
            assert response.json()["code"] == "VALIDATION_ERROR"


class TestVisibility:
    def test_pending_notes_hidden_from_others(self, client, user, other_user, admin):
        note = create_note(client, user)

        assert list_ids(client) == []
        assert list_ids(client, auth(other_user)) == []
        assert list_ids(client, auth(user)) == [note["id"]]
        assert list_ids(client, auth(admin)) == [note["id"]]
        assert client.get(f"/api/notes/{note['id']}").status_code == 404

        approve(client, admin, note["id"])
        assert list_ids(client) == [note["id"]]

    def test_newest_first(self, client, user, admin):
        ids = [create_note(client, user, title=f"Konu özeti {i}")["id"] for i in range(3)]

        assert list_ids(client, auth(user)) == list(reversed(ids))
        assert list_ids(client, auth(user), sort="oldest") == ids

    def test_filters_and_pagination(self, client, user):
        math = create_note(client, user)
        physics = create_note(client, user, subject="fizik", grade="10")

        assert list_ids(client, auth(user), subject="fizik") == [physics["id"]]
        assert list_ids(client, auth(user), grade="11") == [math["id"]]

        response = client.get("/api/notes", params={"page": 2, "limit": 1}, headers=auth(user))
        body = response.json()
        assert [n["id"] for n in body["data"]] == [math["id"]]
        assert body["pagination"] == {"page": 2, "limit": 1, "total": 2, "pages": 2}

    def test_limit_above_maximum_rejected(self, client):
        assert client.get("/api/notes", params={"limit": 51}).status_code == 422

    def test_without_limit_everything_is_returned(self, client, user):
        for i in range(12):
            create_note(client, user, title=f"Konu özeti {i}")

        body = client.get("/api/notes", headers=auth(user)).json()

        assert body["count"] == 12
        assert "pagination" not in body

    def test_get_counts_views(self, client, user, admin):
        note = create_note(client, user)
        approve(client, admin, note["id"])

        client.get(f"/api/notes/{note['id']}")
        response = client.get(f"/api/notes/{note['id']}")

        assert response.json()["data"]["viewCount"] == 2


class TestUpdate:
    def test_author_can_update(self, client, user):
        note = create_note(client, user)

        response = client.put(
            f"/api/notes/{note['id']}",
            json={"title": "Integral Konu Özeti", "tags": "integral, alan"},
            headers=auth(user),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Integral Konu Özeti"
        assert data["tags"] == ["integral", "alan"]
        assert data["description"] == note["description"]
        assert data["updatedAt"] >= note["updatedAt"]

    def test_update_is_visible_in_listing(self, client, user):
        note = create_note(client, user)

        client.put(f"/api/notes/{note['id']}", json={"title": "Limit Soru Bankası"}, headers=auth(user))
        listed = client.get("/api/notes", headers=auth(user)).json()["data"]

        assert [n["id"] for n in listed] == [note["id"]]
        found = listed[0]
        assert found["title"] == "Limit Soru Bankası"
        for field in ("description", "subject", "grade", "tags", "fileUrl", "fileName", "fileSize", "createdAt"):
            assert found[field] == note[field]
        assert datetime.fromisoformat(found["updatedAt"]) > datetime.fromisoformat(found["createdAt"])

    def test_other_users_forbidden(self, client, user, other_user):
        note = create_note(client, user)

        response = client.put(f"/api/notes/{note['id']}", json={"title": "Hijacked title"}, headers=auth(other_user))

        assert response.status_code == 403

    def test_admin_can_update(self, client, user, admin):
        note = create_note(client, user)

        response = client.put(f"/api/notes/{note['id']}", json={"grade": "12"}, headers=auth(admin))

        assert response.json()["data"]["grade"] == "12"

    def test_missing_note(self, client, user):
        assert client.put("/api/notes/999", json={"title": "Nothing here"}, headers=auth(user)).status_code == 404


class TestDelete:
    def test_missing_note_is_not_found(self, client, user):
        assert client.delete("/api/notes/999", headers=auth(user)).status_code == 404

    def test_other_users_forbidden(self, client, user, other_user):
        note = create_note(client, user)

        assert client.delete(f"/api/notes/{note['id']}", headers=auth(other_user)).status_code == 403

    def test_hard_delete_releases_upload(self, client, database, user):
        note = create_note(client, user)

        response = client.delete(f"/api/notes/{note['id']}", headers=auth(user))

        assert response.status_code == 200
        assert client.get(f"/api/notes/{note['id']}", headers=auth(user)).status_code == 404
        with database.session() as db:
            stored = db.query(StoredFile).filter(StoredFile.file_name == note["fileName"]).one()
            assert stored.note_id is None

    def test_soft_delete_hides_note(self, client, database, user):
        note = create_note(client, user)

        response = client.delete(f"/api/notes/{note['id']}", params={"soft": "true"}, headers=auth(user))

        assert response.status_code == 200
        assert list_ids(client, auth(user)) == []
        with database.session() as db:
            stored = db.query(StoredFile).filter(StoredFile.file_name == note["fileName"]).one()
            assert stored.note_id == note["id"]


class TestCollectionBinding:
    def test_put_with_id_in_body(self, client, user):
        note = create_note(client, user)

        response = client.put("/api/notes", json={"id": note["id"], "title": "Yeni başlık burada"}, headers=auth(user))

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Yeni başlık burada"

    def test_delete_with_id_in_body(self, client, user, other_user):
        note = create_note(client, user)

        forbidden = client.request("DELETE", "/api/notes", json={"noteId": note["id"]}, headers=auth(other_user))
        deleted = client.request("DELETE", "/api/notes", json={"noteId": note["id"]}, headers=auth(user))
        missing = client.request("DELETE", "/api/notes", json={"noteId": note["id"]}, headers=auth(user))

        assert forbidden.status_code == 403
        assert deleted.status_code == 200
        assert missing.status_code == 404

    def test_unsupported_method_lists_allowed(self, client):
        response = client.patch("/api/notes", json={})

        assert response.status_code == 405
        assert response.headers["Allow"] == "DELETE, GET, POST, PUT"
        assert response.json() == {
            "success": False,
            "error": "Method PATCH Not Allowed",
            "code": "HTTP_ERROR",
            "requestId": response.headers["X-Request-ID"],
        }


class TestCounters:
    def test_download_increments(self, client, user, admin):
        note = create_note(client, user)
        approve(client, admin, note["id"])

        client.put(f"/api/notes/{note['id']}/download")
        response = client.put(f"/api/notes/{note['id']}/download")

        assert response.json()["data"] == {"downloads": 2, "fileUrl": note["fileUrl"]}

    def test_rating_accumulates(self, client, user, other_user, admin):
        note = create_note(client, user)
        approve(client, admin, note["id"])

        client.post(f"/api/notes/{note['id']}/rate", json={"rating": 4}, headers=auth(other_user))
        response = client.post(f"/api/notes/{note['id']}/rate", json={"rating": 5}, headers=auth(admin))

        data = response.json()["data"]
        assert (data["rating"], data["ratingCount"], data["averageRating"]) == (9, 2, 4.5)

    def test_rating_out_of_range(self, client, user):
        note = create_note(client, user)

        response = client.post(f"/api/notes/{note['id']}/rate", json={"rating": 6}, headers=auth(user))

        assert response.status_code == 422

    def test_sort_by_downloads(self, client, user):
        first = create_note(client, user)
        second = create_note(client, user)
        client.put(f"/api/notes/{first['id']}/download", headers=auth(user))

        assert list_ids(client, auth(user), sort="downloads") == [first["id"], second["id"]]


def test_approval_is_admin_only(client, user):
    note = create_note(client, user)

    response = client.put(f"/api/notes/{note['id']}/approval", json={"isApproved": True}, headers=auth(user))

    assert response.status_code == 403
