import os
import logging
from urllib.parse import urljoin
from dotenv import load_dotenv
from typing import Any, Mapping, Optional

from .base import RNGService
from .utils import open_session, get_jwt_token

logger = logging.getLogger(__name__)


class RngClient(RNGService):
    """Randomness oracle reached over HTTP.

    Requests are created with ``POST /api/v1/randomness/requests`` and polled
    with ``GET /api/v1/randomness/requests/<id>``; a fulfilled request reports
    ``status == "fulfilled"`` and a ``random_number`` (decimal or ``0x`` hex).
    """

    def __init__(self, base_fqdn: Optional[str] = None, timeout: int = 45):
        load_dotenv()
        fqdn = base_fqdn or os.getenv("RNG_BASE_FQDN")
        if not fqdn:
            raise ValueError("Environment variable 'RNG_BASE_FQDN' is not set")

        self.base_url = f"https://{fqdn}".rstrip("/")
        session_info = open_session()
        if not session_info or len(session_info) != 2:
            raise ValueError("open_session() must return (session, csrf_token)")
        self.session, self.csrf = session_info
        self.jwt = get_jwt_token(self.session)
        self.timeout = timeout

    # -------- headers --------
    @property
    def auth_headers(self) -> Mapping[str, str]:
        return {"Accept": "application/json", "Authorization": f"Bearer {self.jwt}"}

    @property
    def auth_csrf_headers(self) -> Mapping[str, str]:
        return {**self.auth_headers, "X-CSRFTOKEN": self.csrf}

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=headers or self.auth_headers,
            params=params,
            json=json,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    def _status(self, request_id: str) -> dict:
        payload = self._request("GET", f"/api/v1/randomness/requests/{request_id}")
        if not isinstance(payload, dict):
            raise RuntimeError(f"Unexpected oracle response: {payload!r}")
        return payload

    # -------- RNGService --------
    def request_random_number(self) -> str:
        payload = self._request(
            "POST", "/api/v1/randomness/requests", headers=self.auth_csrf_headers
        )
        if not isinstance(payload, dict) or payload.get("request_id") is None:
            raise RuntimeError(f"Oracle did not return a request id: {payload!r}")
        request_id = str(payload["request_id"])
        logger.debug("oracle request %s created", request_id)
        return request_id

    def is_request_complete(self, request_id: str) -> bool:
        return self._status(request_id).get("status") == "fulfilled"

    def random_number(self, request_id: str) -> int:
        payload = self._status(request_id)
        if payload.get("status") != "fulfilled":
            raise ValueError(f"Request '{request_id}' is not complete")
        raw = payload.get("random_number")
        if raw is None:
            raise RuntimeError("Oracle response did not include a random_number")
        return int(raw, 0) if isinstance(raw, str) else int(raw)
