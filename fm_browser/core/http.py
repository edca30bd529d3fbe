import logging
from typing import Any, Optional, Tuple

import httpx

from .config import Config


logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


def build_client(config: Config, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    """Create the synchronous client used for all Data API calls.

    FileMaker Servers frequently run with self-signed certificates, so
    verification follows FM_VERIFY_SSL.
    """
    return httpx.Client(
        base_url=config.base_url,
        headers=JSON_HEADERS,
        timeout=httpx.Timeout(config.FM_TIMEOUT_SECONDS),
        verify=config.FM_VERIFY_SSL,
        transport=transport,
    )


def safe_json(response: httpx.Response) -> Any:
    """Decoded JSON body, or None when the body is not JSON."""
    try:
        return response.json()
    except ValueError:
        return None


def _decode_body(response: httpx.Response) -> Any:
    body = safe_json(response)
    if body is None and response.content:
        return {"error": "Invalid upstream response", "details": response.text[:500]}
    return body


async def forward_to_filemaker(
    config: Config,
    method: str,
    path: str,
    *,
    body: Optional[bytes] = None,
    authorization: str = "",
    params: Optional[dict] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[int, Any]:
    """Forward one request under ``/fmi/`` to the remote host.

    Only the Authorization and Content-Type headers are forwarded to avoid
    host/origin conflicts. Returns the upstream status and decoded JSON body.
    """
    target_url = f"{config.host_url}/fmi/{path.lstrip('/')}"
    logger.info(f"Proxying {method} to: {target_url}")

    headers = dict(JSON_HEADERS)
    headers["Authorization"] = authorization or ""

    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(config.FM_TIMEOUT_SECONDS),
            verify=config.FM_VERIFY_SSL,
            transport=transport,
        ) as client:
            response = await client.request(
                method,
                target_url,
                content=body or None,
                headers=headers,
                params=params,
            )
        return response.status_code, _decode_body(response)
    except httpx.HTTPError as e:
        logger.error(f"Proxy Error: {str(e)}")
        return 500, {"error": "Internal Proxy Error", "details": str(e)}
