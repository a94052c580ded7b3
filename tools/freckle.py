import os
from typing import Dict, Any, Optional
import httpx
from loguru import logger

from tools.models import EnrichmentResult, LinkedInProfile, normalize_identifier


class ProviderRequestError(Exception):
    """The enrichment provider rejected the request or could not be reached."""


def profile_from_payload(payload: Dict[str, Any]) -> LinkedInProfile:
    """Build a profile from a provider body, accepting camelCase and snake_case field names."""
    return LinkedInProfile(
        name=payload.get("name"),
        title=payload.get("title"),
        company=payload.get("company"),
        linkedin_url=payload.get("linkedinUrl") or payload.get("linkedin_url"),
        profile_picture=payload.get("profilePicture") or payload.get("profile_picture"),
        location=payload.get("location"),
        headline=payload.get("headline"),
    )


class FreckleClient:
    """Sends LinkedIn lookups to the Freckle inbound webhook. Results come back on our own webhook."""

    def __init__(self, webhook_url: Optional[str] = None, timeout: float = 20, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.webhook_url = webhook_url or os.getenv("FRECKLE_WEBHOOK_URL")
        self.timeout = timeout
        self.transport = transport

        if not self.webhook_url:
            logger.warning("No Freckle webhook URL provided, using mock mode")

    async def request_enrichment(self, email: str, request_id: str) -> Dict[str, Any]:
        """
        Fire a LinkedIn search for ``email``.

        Args:
            email: Contact email
            request_id: Pending ledger id for this request

        Returns:
            The provider's acknowledgement body, normally ``{"status": "OK"}``

        Raises:
            ProviderRequestError: on a non-2xx answer or a transport failure
        """
        clean_email = normalize_identifier(email)
        if not self.webhook_url:
            logger.info(f"Mock mode: would request LinkedIn search for {clean_email}")
            return {"status": "OK"}

        body = {
            "email": clean_email,
            "action": "linkedin_search",
            "format": "json",
            "requestId": request_id,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.webhook_url, json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderRequestError(
                f"Webhook request failed: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderRequestError(f"Webhook request failed: {e}") from e

        logger.info(f"Freckle acknowledged LinkedIn search for {clean_email}: {data}")
        return data if isinstance(data, dict) else {}


def interpret_ack(data: Dict[str, Any]) -> Optional[EnrichmentResult]:
    """
    Turn a provider acknowledgement into an immediate result, if it carries one.

    Returns None when the provider accepted the request for async processing.
    Returns a failed result when the answer holds neither an acceptance nor profile data.
    """
    if data.get("status") == "OK":
        return None

    profile = profile_from_payload(data)
    if profile.has_useful_data():
        return EnrichmentResult(success=True, data=profile)

    return EnrichmentResult(success=False, error="No LinkedIn profile information found for this email")
