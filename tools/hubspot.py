import httpx
import os
from typing import Dict, Any, Optional
from loguru import logger

from tools.models import LinkedInProfile, normalize_identifier


class HubSpotClient:
    """HubSpot CRM client that copies enriched LinkedIn fields onto contacts."""

    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key or os.getenv("HUBSPOT_API_KEY")
        self.base_url = "https://api.hubapi.com"
        self.transport = transport

        if not self.api_key:
            logger.warning("No HubSpot API key provided, using mock mode")

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for HubSpot API requests."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        } if self.api_key else {}

    @staticmethod
    def build_properties(email: str, profile: LinkedInProfile) -> Dict[str, str]:
        """Map profile fields onto HubSpot contact properties, dropping empty ones."""
        properties = {"email": email}
        if profile.name:
            parts = profile.name.split()
            properties["firstname"] = parts[0] if parts else ""
            properties["lastname"] = " ".join(parts[1:])
        properties.update({
            "jobtitle": profile.title,
            "company": profile.company,
            "city": profile.location,
            "amc_linkedin_url": profile.linkedin_url,
            "amc_linkedin_headline": profile.headline,
        })
        return {key: value for key, value in properties.items() if value}

    async def sync_profile(self, email: str, profile: LinkedInProfile) -> Optional[Dict[str, Any]]:
        """
        Create or update the HubSpot contact for ``email`` with enriched fields.

        Args:
            email: Contact email
            profile: Resolved LinkedIn profile

        Returns:
            ``{"id": ..., "action": "created" | "updated"}`` or None if the sync failed
        """
        clean_email = normalize_identifier(email)
        properties = self.build_properties(clean_email, profile)

        if not self.api_key:
            logger.info("Using mock contact sync")
            return {"id": "mock_12345", "action": "updated", "properties": properties}

        try:
            async with httpx.AsyncClient(timeout=20, transport=self.transport) as client:
                existing_contact = await self._find_contact_by_email(client, clean_email)

                if existing_contact:
                    contact_id = existing_contact["id"]
                    await self._update_contact(client, contact_id, properties)
                    logger.info(f"Updated existing contact {contact_id} with LinkedIn data")
                    return {"id": contact_id, "action": "updated", "properties": properties}

                response = await self._create_contact(client, properties)
                contact_id = response.get("id")
                logger.info(f"Created new contact {contact_id} from LinkedIn data")
                return {"id": contact_id, "action": "created", "properties": properties}

        except httpx.HTTPError as e:
            logger.error(f"Contact sync failed for {clean_email}: {e}")
            return None

    async def _find_contact_by_email(self, client: httpx.AsyncClient, email: str) -> Optional[Dict[str, Any]]:
        """Find contact by email address."""
        response = await client.post(
            f"{self.base_url}/crm/v3/objects/contacts/search",
            headers=self._get_headers(),
            json={
                "filterGroups": [{
                    "filters": [{
                        "propertyName": "email",
                        "operator": "EQ",
                        "value": email
                    }]
                }]
            }
        )
        response.raise_for_status()
        results = response.json().get("results") or []
        return results[0] if results else None

    async def _create_contact(self, client: httpx.AsyncClient, properties: Dict[str, Any]) -> Dict[str, Any]:
        """Create new contact in HubSpot."""
        response = await client.post(
            f"{self.base_url}/crm/v3/objects/contacts",
            headers=self._get_headers(),
            json={"properties": properties}
        )
        response.raise_for_status()
        return response.json()

    async def _update_contact(self, client: httpx.AsyncClient, contact_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """Update existing contact in HubSpot."""
        response = await client.patch(
            f"{self.base_url}/crm/v3/objects/contacts/{contact_id}",
            headers=self._get_headers(),
            json={"properties": properties}
        )
        response.raise_for_status()
        return response.json()
