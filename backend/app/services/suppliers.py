"""
Supplier API connection tester

Probes a supplier's API with the credentials an admin typed into the
supplier form, before they are saved. One GET per probe, no retries.
"""
import base64
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urlparse
import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

HIDDEN = "[HIDDEN]"

# Host keyword -> path probed first
ENDPOINT_TEMPLATES: Dict[str, str] = {
    "aliexpress": "ping",
    "spocket": "profile",
    "oberlo": "products",
    "modalyst": "suppliers",
}
DEFAULT_PROBE_PATH = "status"
FALLBACK_PROBE_PATH = "api/v1/products"


class ConnectionConfigError(ValueError):
    """The submitted connection settings cannot be tested"""


@dataclass
class ConnectionSettings:
    api_endpoint: str
    api_key: Optional[str] = None
    api_secret: Optional[str] = None
    api_username: Optional[str] = None
    api_password: Optional[str] = None
    api_header_auth: Optional[str] = None

    def validate(self) -> None:
        if not self.api_endpoint:
            raise ConnectionConfigError("API endpoint URL is required")

        parsed = urlparse(self.api_endpoint)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConnectionConfigError("Invalid API endpoint URL")

        has_auth = self.api_key or (self.api_username and self.api_password) or self.api_header_auth
        if not has_auth:
            raise ConnectionConfigError("API authentication credentials required")


@dataclass
class ProbeResult:
    ok: bool
    status: int
    url: str
    error: Optional[str] = None


def mask_api_key(api_key: Optional[str]) -> Optional[str]:
    return HIDDEN if api_key else None


def template_for(endpoint: str) -> Optional[str]:
    lowered = endpoint.lower()
    for keyword in ENDPOINT_TEMPLATES:
        if keyword in lowered:
            return keyword
    return None


def build_auth_headers(conn: ConnectionSettings) -> Dict[str, str]:
    """
    Headers for the first authentication method present.

    API key wins over basic auth, which wins over a raw header value.
    """
    headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }

    if conn.api_key:
        if template_for(conn.api_endpoint) == "aliexpress":
            headers["X-API-KEY"] = conn.api_key
        else:
            headers["Authorization"] = f"Bearer {conn.api_key}"
        if conn.api_secret:
            headers["X-API-SECRET"] = conn.api_secret
    elif conn.api_username and conn.api_password:
        token = base64.b64encode(f"{conn.api_username}:{conn.api_password}".encode("utf-8")).decode("ascii")
        headers["Authorization"] = f"Basic {token}"
    elif conn.api_header_auth:
        headers["Authorization"] = conn.api_header_auth

    return headers


def probe_urls(endpoint: str) -> List[str]:
    base = endpoint if endpoint.endswith("/") else endpoint + "/"
    template = template_for(endpoint)
    first = ENDPOINT_TEMPLATES[template] if template else DEFAULT_PROBE_PATH
    return [base + first, base + FALLBACK_PROBE_PATH]


def supplier_name_from_endpoint(endpoint: str) -> str:
    """Title-cased second-level domain, e.g. api.spocket.co -> Spocket"""
    host = urlparse(endpoint).hostname
    if not host:
        return "Supplier"
    parts = host.split(".")
    main = parts[-2] if len(parts) >= 2 else host
    return main[:1].upper() + main[1:]


class SupplierConnectionTester:

    def __init__(self, timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout if timeout is not None else settings.SUPPLIER_TEST_TIMEOUT
        self.transport = transport

    async def _probe(self, client: httpx.AsyncClient, url: str, headers: Dict[str, str]) -> ProbeResult:
        try:
            response = await client.get(url, headers=headers)
        except httpx.TimeoutException:
            logger.warning("supplier probe timed out: %s", url)
            return ProbeResult(ok=False, status=0, url=url, error="Request timed out")
        except httpx.HTTPError as e:
            logger.warning("supplier probe failed: %s (%s)", url, e)
            return ProbeResult(ok=False, status=0, url=url, error=str(e) or "Connection failed")

        return ProbeResult(ok=response.is_success, status=response.status_code, url=url)

    async def test(self, conn: ConnectionSettings) -> dict:
        conn.validate()
        headers = build_auth_headers(conn)
        supplier_name = supplier_name_from_endpoint(conn.api_endpoint)

        first = None
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for url in probe_urls(conn.api_endpoint):
                result = await self._probe(client, url, headers)
                first = first or result
                if result.ok:
                    return {
                        "success": True,
                        "message": f"Successfully connected to API with status {result.status}",
                        "supplier_name": supplier_name,
                    }

        # Report the primary probe's failure
        return {
            "success": False,
            "error": first.error or f"API responded with status {first.status}",
            "supplier_name": supplier_name,
        }


def get_connection_tester() -> SupplierConnectionTester:
    return SupplierConnectionTester()
