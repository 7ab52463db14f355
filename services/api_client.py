"""
Beefboard API Client Module

This module wraps the Beefboard REST API. It builds authenticated requests,
maps HTTP status codes and transport failures onto ApiError kinds, and
decodes responses into data models. Calls are blocking and never retried.
"""

import time
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests
from urllib3 import encode_multipart_formdata

from config import settings
from data.models import Identity, Post
from data.protocols import CredentialStorage
from utils.exceptions import ApiError, ApiErrorKind
from utils.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[float], None]


def check_error_code(status_code: int) -> ApiError:
    """
    Map a non-2xx HTTP status code onto an ApiError.

    Args:
        status_code: The HTTP status code.

    Returns:
        ApiError: The matching error.
    """
    if status_code == 400:
        kind = ApiErrorKind.INVALID_REQUEST
    elif status_code == 401:
        kind = ApiErrorKind.INVALID_CREDENTIALS
    elif status_code == 404:
        kind = ApiErrorKind.NOT_FOUND
    else:
        kind = ApiErrorKind.UNKNOWN_ERROR
    return ApiError(kind, f"HTTP {status_code}", status_code=status_code)


class _ProgressBody:
    """File-like request body that reports how much of itself has been read."""

    def __init__(self, body: bytes, callback: Optional[ProgressCallback], chunk_size: int):
        self._body = body
        self._callback = callback
        self._chunk_size = chunk_size
        self._offset = 0
        self._reported = 0.0
        self.finished = False

    def __len__(self):
        return len(self._body)

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            size = len(self._body) - self._offset
        size = min(size, self._chunk_size)
        chunk = self._body[self._offset:self._offset + size]
        self._offset += len(chunk)
        self._report()
        return chunk

    def _report(self):
        if self._callback is None or self.finished:
            return
        fraction = self._offset / len(self._body) if self._body else 1.0
        fraction = min(max(fraction, self._reported), 1.0)
        if fraction > self._reported:
            self._reported = fraction
            self._callback(fraction)


class ApiClient:
    """Client for the Beefboard REST API."""

    def __init__(self, credentials: CredentialStorage, base_url: Optional[str] = None,
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        """
        Initialize the API client.

        Args:
            credentials: Store holding the session token attached to requests.
            base_url: API root including the version path, defaults to settings.BEEFBOARD_API_HOST.
            timeout: Seconds per request, defaults to settings.REQUEST_TIMEOUT.
            session: Optional requests session to reuse.
        """
        self.credentials = credentials
        self.base_url = (base_url or settings.BEEFBOARD_API_HOST).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    # -------------------------------------------------------------------------
    # Request builders
    # -------------------------------------------------------------------------

    def _build_url(self, path: str) -> str:
        return self.base_url + path

    def _build_headers(self, authenticated: bool = True) -> Dict[str, str]:
        # Add a token to the headers only if we have one; the server decides the rest
        if authenticated:
            token = self.credentials.get_token()
            if token:
                return {settings.TOKEN_HEADER: token}
        return {}

    def _request(self, method: str, path: str, authenticated: bool = True,
                 headers: Optional[Dict[str, str]] = None, **kwargs) -> requests.Response:
        """
        Send a request and map any failure onto an ApiError.

        Returns:
            requests.Response: A response with a 2xx status.

        Raises:
            ApiError: On transport failure or a non-2xx status.
        """
        url = self._build_url(path)
        request_headers = self._build_headers(authenticated)
        if headers:
            request_headers.update(headers)

        started = time.monotonic()
        try:
            response = self.session.request(method, url, headers=request_headers,
                                            timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            logger.warning(f"{method} {path} timed out after {self.timeout}s")
            raise ApiError(ApiErrorKind.TIMEOUT, str(e)) from e
        except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema,
                requests.exceptions.InvalidSchema) as e:
            logger.error(f"Unsupported URL {url}: {e}")
            raise ApiError(ApiErrorKind.UNSUPPORTED_URL, str(e)) from e
        except requests.RequestException as e:
            logger.warning(f"{method} {path} failed to connect: {e}")
            raise ApiError(ApiErrorKind.CONNECTION_ERROR, str(e)) from e

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.debug(f"{method} {path} -> {response.status_code} ({elapsed_ms:.0f} ms)")

        if not 200 <= response.status_code < 300:
            raise check_error_code(response.status_code)
        return response

    @staticmethod
    def _decode_json(response: requests.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise ApiError(ApiErrorKind.INVALID_RESPONSE, "Response body is not JSON") from e
        if not isinstance(body, dict):
            raise ApiError(ApiErrorKind.INVALID_RESPONSE, "Response body is not a JSON object")
        return body

    @staticmethod
    def _require_field(body: Dict[str, Any], key: str, expected_type):
        value = body.get(key)
        if not isinstance(value, expected_type):
            raise ApiError(ApiErrorKind.INVALID_RESPONSE, f"Response is missing {key}")
        return value

    # -------------------------------------------------------------------------
    # API
    # -------------------------------------------------------------------------

    def image_url(self, post_id: str, index: int) -> str:
        """Build the static URL of an image attached to a post."""
        return self._build_url(f"/posts/{post_id}/images/{index}")

    def login(self, username: str, password: str) -> None:
        """
        Login with the given credentials. Success stores the token.

        Raises:
            ApiError: INVALID_CREDENTIALS for a rejected login, or any transport error.
        """
        self.credentials.clear_token()
        response = self._request("PUT", "/me", authenticated=False,
                                 json={"username": username, "password": password})
        token = self._require_field(self._decode_json(response), "token", str)
        self.credentials.set_token(token)
        logger.info(f"Logged in as {username}")

    def logout(self) -> None:
        """
        Revoke the session on the server. The local token is cleared regardless of outcome.

        Raises:
            ApiError: If the server could not be told; the token is still cleared.
        """
        if not self.credentials.has_token():
            return
        try:
            self._request("DELETE", "/me")
        finally:
            self.credentials.clear_token()

    def fetch_auth(self) -> Identity:
        """Get the identity the current token belongs to."""
        response = self._request("GET", "/me")
        return Identity.from_dict(self._decode_json(response))

    def fetch_user(self, username: str) -> Identity:
        """Get the public details of the given user."""
        response = self._request("GET", f"/accounts/{username}")
        return Identity.from_dict(self._decode_json(response))

    def fetch_posts(self) -> List[Post]:
        """Get the posts for the home feed, in server order."""
        body = self._decode_json(self._request("GET", "/posts"))
        posts = self._require_field(body, "posts", list)
        return [Post.from_dict(item) for item in posts]

    def fetch_post(self, post_id: str) -> Post:
        """
        Get a single post.

        If logged in, admins can see all posts and authors can see their own
        unapproved posts.
        """
        return Post.from_dict(self._decode_json(self._request("GET", f"/posts/{post_id}")))

    def fetch_image(self, post_id: str, index: int) -> bytes:
        """Download the raw bytes of an image attached to a post."""
        return self._request("GET", f"/posts/{post_id}/images/{index}", authenticated=False).content

    def register(self, username: str, password: str, email: str,
                 first_name: str, last_name: str) -> bool:
        """Create a new account. Returns the server's success flag."""
        response = self._request("POST", "/accounts", authenticated=False, json={
            "username": username,
            "password": password,
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
        })
        return self._require_field(self._decode_json(response), "success", bool)

    def create_post(self, title: str, content: str, images: Sequence[bytes] = (),
                    progress: Optional[ProgressCallback] = None) -> str:
        """
        Upload a new post as multipart form data.

        Args:
            title: Post title.
            content: Post body.
            images: JPEG encoded images, uploaded in order.
            progress: Called with the uploaded fraction in [0, 1] while the body
                is sent. Never called after this method returns or raises.

        Returns:
            str: The id of the created post.
        """
        fields = [
            ("images", (settings.UPLOAD_IMAGE_FILENAME, image, settings.UPLOAD_IMAGE_MIME_TYPE))
            for image in images
        ]
        fields.append(("title", title))
        fields.append(("content", content))
        body, content_type = encode_multipart_formdata(fields)

        upload = _ProgressBody(body, progress, settings.UPLOAD_CHUNK_SIZE)
        try:
            response = self._request("POST", "/posts", data=upload,
                                     headers={"Content-Type": content_type})
        finally:
            upload.finished = True

        post_id = self._require_field(self._decode_json(response), "id", str)
        logger.info(f"Created post {post_id} with {len(images)} image(s)")
        return post_id

    def set_pinned(self, post_id: str, pinned: bool) -> None:
        """
        Pin or unpin a post. Requires an admin session.

        The server answers with a re-issued token, which replaces the stored one.
        """
        response = self._request("PUT", f"/posts/{post_id}", json={"pinned": pinned})
        token = self._decode_json(response).get("token")
        if isinstance(token, str) and token:
            self.credentials.set_token(token)

    def delete_post(self, post_id: str) -> None:
        """Delete a post. Requires the author's or an admin session."""
        self._request("DELETE", f"/posts/{post_id}")
