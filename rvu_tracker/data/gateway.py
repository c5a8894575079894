"""HTTP client for the RVU Tracker backend (visits and favorites)."""

import json
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Callable, Iterable, List, Optional

from ..core.config import API_USER_AGENT, DEFAULT_API_BASE_URL, DEFAULT_API_TIMEOUT_SECONDS
from ..core.errors import (
    AuthExpiredError,
    DecodingError,
    NetworkError,
    NotAuthenticatedError,
    ServerError,
)
from .models import Favorite, Visit, VisitDraft

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class RemoteDataGateway:
    """Talks to the backend using JWT Bearer token auth.

    The token provider is the only link to the sign-in layer: it returns the
    current token, or None when the user is signed out.
    """

    def __init__(self, base_url: str = DEFAULT_API_BASE_URL, token_provider: TokenProvider = None,
                 timeout: float = DEFAULT_API_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip('/')
        self.token_provider = token_provider or (lambda: None)
        self.timeout = timeout

    # =========================================================================
    # Visits
    # =========================================================================

    def fetch_visits(self) -> List[Visit]:
        data = self._request("GET", "visits")
        if not isinstance(data, list):
            raise DecodingError("expected a list of visits")
        visits = [Visit.from_dict(item) for item in data]
        logger.info(f"Fetched {len(visits)} visits")
        return visits

    def create_visit(self, draft: VisitDraft) -> Visit:
        data = self._request("POST", "visits", body=draft.to_request())
        return Visit.from_dict(data)

    def update_visit(self, visit_id: str, draft: VisitDraft) -> Visit:
        data = self._request("PUT", f"visits/{self._quote(visit_id)}", body=draft.to_request())
        return Visit.from_dict(data)

    def delete_visit(self, visit_id: str):
        self._request("DELETE", f"visits/{self._quote(visit_id)}", expect_body=False)
        logger.info(f"Deleted visit {visit_id}")

    # =========================================================================
    # Favorites
    # =========================================================================

    def fetch_favorites(self) -> List[Favorite]:
        data = self._request("GET", "favorites")
        if not isinstance(data, list):
            raise DecodingError("expected a list of favorites")
        favorites = [Favorite.from_dict(item) for item in data]
        logger.info(f"Fetched {len(favorites)} favorites")
        return favorites

    def create_favorite(self, code: str) -> Favorite:
        data = self._request("POST", "favorites", body={"hcpcs": code})
        return Favorite.from_dict(data)

    def delete_favorite(self, code: str):
        # 404 means it is already gone on the server
        self._request("DELETE", f"favorites/{self._quote(code)}", expect_body=False, ok_statuses=(404,))

    def reorder_favorites(self, ordered_codes: Iterable[str]):
        """Persist display order: position in ordered_codes becomes sort_order."""
        body = {
            "favorites": [
                {"hcpcs": code, "sort_order": index}
                for index, code in enumerate(ordered_codes)
            ]
        }
        self._request("PATCH", "favorites/reorder", body=body, expect_body=False)

    # =========================================================================
    # Requests
    # =========================================================================

    @staticmethod
    def _quote(segment: str) -> str:
        return urllib.parse.quote(str(segment), safe='')

    def _build_request(self, method: str, path: str, body: Any = None) -> urllib.request.Request:
        token = self.token_provider()
        if not token:
            raise NotAuthenticatedError()

        data = json.dumps(body).encode('utf-8') if body is not None else None
        return urllib.request.Request(
            f"{self.base_url}/{path}",
            data=data,
            method=method,
            headers={
                'Content-Type': 'application/json',
                'Authorization': f'Bearer {token}',
                'User-Agent': API_USER_AGENT,
            },
        )

    def _request(self, method: str, path: str, body: Any = None, expect_body: bool = True,
                 ok_statuses: tuple = ()) -> Any:
        """Send a request and decode the JSON response.

        Raises:
            NotAuthenticatedError: no token available
            AuthExpiredError: server answered 401
            ServerError: any other non-2xx status not in ok_statuses
            NetworkError: no response at all
            DecodingError: body is not valid JSON
        """
        req = self._build_request(method, path, body)
        logger.debug(f"{method} {req.full_url}")

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                status = getattr(response, 'status', 200)
                raw = response.read()
        except urllib.error.HTTPError as e:
            status = e.code
            raw = e.read() if e.fp is not None else b''
        except (urllib.error.URLError, socket.timeout, ConnectionError) as e:
            logger.error(f"Network error on {method} {path}: {e}")
            raise NetworkError(str(e)) from e

        if status == 401:
            logger.warning(f"{method} {path} returned 401, session expired")
            raise AuthExpiredError()
        if not (200 <= status < 300) and status not in ok_statuses:
            message = self._decode_error_message(raw)
            logger.error(f"{method} {path} failed with status {status}: {message}")
            raise ServerError(status, message)

        if not expect_body:
            return None
        try:
            return json.loads(raw.decode('utf-8'))
        except (UnicodeDecodeError, ValueError) as e:
            logger.error(f"Could not decode response for {method} {path}: {raw[:500]!r}")
            raise DecodingError(str(e)) from e

    @staticmethod
    def _decode_error_message(raw: bytes) -> Optional[str]:
        try:
            payload = json.loads(raw.decode('utf-8'))
        except (UnicodeDecodeError, ValueError):
            return None
        if isinstance(payload, dict) and isinstance(payload.get("error"), str):
            return payload["error"]
        return None


__all__ = ['RemoteDataGateway', 'TokenProvider']
