from datetime import timedelta

from allone.core.config import settings
from allone.utils.validators import utcnow
from tests.helpers import auth

QUESTION = {
    "question": "f(x) = x^3 fonksiyonunun türevi nedir?",
    "description": "Kuvvet kuralını kullanarak çözünüz.",
    "category": "matematik",
    "difficulty": "easy",
    "points": 60,
}


def create_question(client, admin, **overrides):
    response = client.post("/api/daily-questions", json=dict(QUESTION, **overrides), headers=auth(admin))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def answer(client, owner, question_id, content="3x^2"):
    response = client.post(
        f"/api/daily-questions/{question_id}/answers", json={"content": content}, headers=auth(owner)
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_is_admin_only(client, user, admin):
    assert client.post("/api/daily-questions", json=QUESTION, headers=auth(user)).status_code == 403
    assert create_question(client, admin)["points"] == 60


def test_points_range(client, admin):
    low = client.post("/api/daily-questions", json=dict(QUESTION, points=5), headers=auth(admin))
    high = client.post("/api/daily-questions", json=dict(QUESTION, points=101), headers=auth(admin))

    assert low.status_code == high.status_code == 422


def test_today(client, admin):
    assert client.get("/api/daily-questions/today").status_code == 404

    yesterday = (utcnow() - timedelta(days=1)).isoformat()
    create_question(client, admin, date=yesterday)
    today = create_question(client, admin, question="Bugünün sorusu nedir?")

    assert client.get("/api/daily-questions/today").json()["data"]["id"] == today["id"]


def test_list_filters(client, admin):
    easy = create_question(client, admin)
    hard = create_question(client, admin, difficulty="hard", category="fizik")

    everything = client.get("/api/daily-questions").json()
    physics = client.get("/api/daily-questions", params={"category": "fizik"}).json()["data"]
    easy_only = client.get("/api/daily-questions", params={"difficulty": "easy"}).json()["data"]

    assert [q["id"] for q in everything["data"]] == [hard["id"], easy["id"]]
    assert [q["id"] for q in physics] == [hard["id"]]
    assert [q["id"] for q in easy_only] == [easy["id"]]


def test_likes(client, user, other_user, admin):
    question = create_question(client, admin)
    reply = answer(client, user, question["id"])

    liked = client.post(f"/api/daily-questions/{question['id']}/like", headers=auth(user)).json()["data"]
    answer_like = client.post(
        f"/api/daily-questions/{question['id']}/answers/{reply['id']}/like", headers=auth(other_user)
    ).json()["data"]

    assert liked["liked"] is True
    assert answer_like["likeCount"] == 1


def test_accept_answer_awards_points_once(client, user, other_user, admin):
    question = create_question(client, admin, points=60)
    first = answer(client, user, question["id"])
    second = answer(client, other_user, question["id"], content="x^2")
    accept_url = f"/api/daily-questions/{question['id']}/answers/{{}}/accept"

    client.put(accept_url.format(first["id"]), headers=auth(admin))
    client.put(accept_url.format(second["id"]), headers=auth(admin))
    response = client.put(accept_url.format(first["id"]), headers=auth(admin))

    answers = {a["id"]: a["isAccepted"] for a in response.json()["data"]["answers"]}
    assert answers == {first["id"]: True, second["id"]: False}

    me = client.get("/api/auth/me", headers=auth(user)).json()["data"]
    assert me["points"] == 60
    assert me["level"] == 60 // settings.POINTS_PER_LEVEL + 1
    other = client.get("/api/auth/me", headers=auth(other_user)).json()["data"]
    assert other["points"] == 60


def test_accept_is_admin_only(client, user, admin):
    question = create_question(client, admin)
    reply = answer(client, user, question["id"])

    response = client.put(
        f"/api/daily-questions/{question['id']}/answers/{reply['id']}/accept", headers=auth(user)
    )

    assert response.status_code == 403


def test_level_up(client, user, admin):
    for points in (60, 60):
        question = create_question(client, admin, points=points)
        reply = answer(client, user, question["id"])
        client.put(f"/api/daily-questions/{question['id']}/answers/{reply['id']}/accept", headers=auth(admin))

    me = client.get("/api/auth/me", headers=auth(user)).json()["data"]
    assert (me["points"], me["level"]) == (120, 2)
