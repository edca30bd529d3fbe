import logging
from typing import Dict, Optional

import httpx

from ..core.config import Config
from ..core.errors import AuthFailure, MalformedResponse, TransportError
from ..core.http import safe_json


logger = logging.getLogger(__name__)


class SessionManager:
    """Holds the single Data API session token for the process.

    The token is created lazily on the first call to :meth:`get_token` and
    reused for the lifetime of the manager. There is no expiry tracking: a
    token the server has expired makes later calls fail as unauthenticated.
    """

    def __init__(self, config: Config, client: httpx.Client):
        self.config = config
        self.client = client
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    def get_token(self) -> str:
        if self._token:
            return self._token

        try:
            response = self.client.post(
                "/sessions",
                json={},
                auth=httpx.BasicAuth(self.config.FM_USER, self.config.FM_PASSWORD),
            )
        except httpx.HTTPError as e:
            logger.error(f"Error fetching FileMaker token: {e}")
            raise TransportError(f"Session request failed: {e}") from e

        if response.status_code == 401:
            logger.error("FileMaker rejected the configured credentials")
            raise AuthFailure("Invalid FileMaker credentials", status_code=401, payload=safe_json(response))
        if response.status_code >= 400:
            logger.error(f"Error fetching FileMaker token: HTTP {response.status_code}")
            raise TransportError(
                f"Session request failed with HTTP {response.status_code}",
                status_code=response.status_code,
                payload=safe_json(response),
            )

        body = safe_json(response)
        envelope = body.get("response") if isinstance(body, dict) else None
        token = envelope.get("token") if isinstance(envelope, dict) else None
        if not token:
            raise MalformedResponse("Session response did not contain a token", payload=body)

        self._token = token
        return token

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.get_token()}"}
