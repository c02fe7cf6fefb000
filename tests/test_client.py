import httpx
import pytest

from allone.client import ApiClient, ApiError
from tests.helpers import PASSWORD, PDF_BYTES


@pytest.fixture
def api(client):
    return ApiClient(http=client)


def test_register_keeps_token(api):
    api.register("Ayşe Yılmaz", "ayse@school.edu", PASSWORD)

    assert api.token
    assert api.get_current_user()["data"]["email"] == "ayse@school.edu"


def test_error_message_comes_from_envelope(api, user):
    with pytest.raises(ApiError) as excinfo:
        api.login("ayse@school.edu", "wrong-password")

    assert excinfo.value.message == "Invalid credentials"
    assert excinfo.value.status_code == 401
    assert excinfo.value.code == "INVALID_CREDENTIALS"
    assert api.token is None


def test_upload_and_create_note(api, user):
    api.set_token(user["token"])

    uploaded = api.upload_file(PDF_BYTES, "turev.pdf")["data"]
    note = api.create_note(
        {
            "title": "Türev Konu Özeti",
            "description": "Türev kuralları ve çözümlü örnekler",
            "subject": "matematik",
            "grade": "11",
            "fileUrl": uploaded["fileUrl"],
            "fileName": uploaded["fileName"],
            "fileSize": uploaded["fileSize"],
        }
    )["data"]

    assert [n["id"] for n in api.get_notes()["data"]] == [note["id"]]
    api.delete_note(note["id"])
    with pytest.raises(ApiError) as excinfo:
        api.get_note(note["id"])
    assert excinfo.value.status_code == 404


def test_non_json_response():
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="Bad gateway"))
    api = ApiClient("http://api.local", http=httpx.Client(transport=transport))

    with pytest.raises(ApiError) as excinfo:
        api.get_categories()

    assert excinfo.value.message == "Server error. Please try again later."
    assert excinfo.value.status_code == 502


def test_transport_failure():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    api = ApiClient("http://api.local", http=httpx.Client(transport=httpx.MockTransport(refuse)))

    with pytest.raises(ApiError) as excinfo:
        api.get_notes()

    assert excinfo.value.message == "Connection error. Check your internet connection."
    assert excinfo.value.status_code is None


def test_bearer_token_is_sent():
    seen = {}

    def handler(request):
        seen["authorization"] = request.headers.get("authorization")
        return httpx.Response(200, json={"success": True, "data": []})

    api = ApiClient("http://api.local", token="abc", http=httpx.Client(transport=httpx.MockTransport(handler)))
    api.get_categories()

    assert seen["authorization"] == "Bearer abc"
