"""
HTTP client for the AllOne API

Wraps ``httpx.Client``: sends JSON, attaches the bearer token and turns
error envelopes into ``ApiError``.
"""

import logging
from typing import Any, BinaryIO, Dict, Optional, Union

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
SERVER_ERROR_MESSAGE = "Server error. Please try again later."
CONNECTION_ERROR_MESSAGE = "Connection error. Check your internet connection."


class ApiError(Exception):
    """Request failed; ``message`` is safe to show to a user"""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class ApiClient:
    """Small synchronous client covering the public API"""

    def __init__(self, base_url: str = "", token: Optional[str] = None, http: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.http = http or httpx.Client(timeout=DEFAULT_TIMEOUT)
        self._owns_http = http is None

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send a request and return the decoded envelope

        Raises:
            ApiError: transport failure, non-JSON body or an error status
        """
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = self.http.request(
                method, f"{self.base_url}{path}", json=json, params=params, files=files, headers=headers
            )
        except httpx.HTTPError as e:
            logger.warning(f"API request failed: {method} {path}: {e}")
            raise ApiError(CONNECTION_ERROR_MESSAGE) from e

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise ApiError(SERVER_ERROR_MESSAGE, response.status_code)
        try:
            data = response.json()
        except ValueError as e:
            raise ApiError(SERVER_ERROR_MESSAGE, response.status_code) from e

        if response.is_error:
            message = None
            if isinstance(data, dict):
                message = data.get("error") or data.get("message")
            raise ApiError(
                message or "API request failed",
                response.status_code,
                data.get("code") if isinstance(data, dict) else None,
            )
        return data

    # Auth
    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        data = self.request("POST", "/api/auth/register", json={"name": name, "email": email, "password": password})
        self.set_token(data["data"]["token"])
        return data

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self.request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.set_token(data["data"]["token"])
        return data

    def logout(self) -> Dict[str, Any]:
        data = self.request("POST", "/api/auth/logout")
        self.set_token(None)
        return data

    def get_current_user(self) -> Dict[str, Any]:
        return self.request("GET", "/api/auth/me")

    def update_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("PUT", "/api/auth/profile", json=profile)

    def change_password(self, current_password: str, new_password: str) -> Dict[str, Any]:
        return self.request(
            "POST",
            "/api/auth/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    def get_stats(self) -> Dict[str, Any]:
        return self.request("GET", "/api/auth/stats")

    # Notes
    def get_notes(self, **params: Any) -> Dict[str, Any]:
        return self.request("GET", "/api/notes", params=params)

    def get_note(self, note_id: int) -> Dict[str, Any]:
        return self.request("GET", f"/api/notes/{note_id}")

    def create_note(self, note: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("POST", "/api/notes", json=note)

    def update_note(self, note_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("PUT", f"/api/notes/{note_id}", json=fields)

    def delete_note(self, note_id: int, soft: bool = False) -> Dict[str, Any]:
        return self.request("DELETE", f"/api/notes/{note_id}", params={"soft": "true"} if soft else None)

    def download_note(self, note_id: int) -> Dict[str, Any]:
        return self.request("PUT", f"/api/notes/{note_id}/download")

    def rate_note(self, note_id: int, rating: int) -> Dict[str, Any]:
        return self.request("POST", f"/api/notes/{note_id}/rate", json={"rating": rating})

    # Upload
    def upload_file(
        self, file: Union[bytes, BinaryIO], filename: str, content_type: str = "application/pdf"
    ) -> Dict[str, Any]:
        return self.request("POST", "/api/upload", files={"file": (filename, file, content_type)})

    def upload_avatar(self, file: Union[bytes, BinaryIO], filename: str, content_type: str) -> Dict[str, Any]:
        return self.request("POST", "/api/auth/avatar", files={"avatar": (filename, file, content_type)})

    # Categories
    def get_categories(self) -> Dict[str, Any]:
        return self.request("GET", "/api/categories")

    def create_category(self, category: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("POST", "/api/categories", json=category)

    def update_category(self, category_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("PUT", f"/api/categories/{category_id}", json=fields)

    def delete_category(self, category_id: int) -> Dict[str, Any]:
        return self.request("DELETE", f"/api/categories/{category_id}")

    # Community
    def get_posts(self, **params: Any) -> Dict[str, Any]:
        return self.request("GET", "/api/community/posts", params=params)

    def create_post(self, post: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("POST", "/api/community/posts", json=post)

    def like_post(self, post_id: int) -> Dict[str, Any]:
        return self.request("POST", f"/api/community/posts/{post_id}/like")

    def comment_on_post(self, post_id: int, content: str) -> Dict[str, Any]:
        return self.request("POST", f"/api/community/posts/{post_id}/comments", json={"content": content})

    # Daily questions
    def get_daily_questions(self, **params: Any) -> Dict[str, Any]:
        return self.request("GET", "/api/daily-questions", params=params)

    def get_todays_question(self) -> Dict[str, Any]:
        return self.request("GET", "/api/daily-questions/today")

    def answer_question(self, question_id: int, content: str) -> Dict[str, Any]:
        return self.request("POST", f"/api/daily-questions/{question_id}/answers", json={"content": content})
