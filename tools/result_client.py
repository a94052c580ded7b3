import os
from typing import Optional
from urllib.parse import quote
import httpx
from loguru import logger

from tools.models import EnrichmentResult, normalize_identifier


class RemoteResultSource:
    """Polls the webhook receiver's result endpoint when it runs in another process."""

    def __init__(self, base_url: Optional[str] = None, timeout: float = 10, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or os.getenv("RESULT_SERVICE_URL", "http://localhost:8000")).rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def fetch_result(self, identifier: str) -> Optional[EnrichmentResult]:
        """Return the result if the service has one, None on 404. Other failures raise."""
        email = normalize_identifier(identifier)
        url = f"{self.base_url}/api/linkedin-result/{quote(email, safe='')}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(url)

        if response.status_code == 404:
            return None
        response.raise_for_status()

        logger.info(f"Fetched LinkedIn result for {email} from {self.base_url}")
        return EnrichmentResult.model_validate(response.json())
