import asyncio
import json
from unittest.mock import patch

import httpx
import pytest

from tools.freckle import FreckleClient, ProviderRequestError, interpret_ack, profile_from_payload
from tools.hubspot import HubSpotClient
from tools.models import LinkedInProfile


class TestFreckleClient:
    """Test the Freckle provider client."""

    def test_posts_normalized_search(self):
        """Test the lookup is posted with the normalized email and request id."""
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"status": "OK"})

        client = FreckleClient("https://hooks.freckle.test/v1/f/abc", transport=httpx.MockTransport(handler))
        ack = asyncio.run(client.request_enrichment(" Jane@Acme.com ", "17000000001234abcd"))

        assert ack == {"status": "OK"}
        assert seen == [{
            "email": "jane@acme.com",
            "action": "linkedin_search",
            "format": "json",
            "requestId": "17000000001234abcd",
        }]

    def test_non_2xx_raises_provider_error(self):
        """Test a non-2xx answer becomes a provider error."""
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        client = FreckleClient("https://hooks.freckle.test/v1/f/abc", transport=transport)

        with pytest.raises(ProviderRequestError, match="503"):
            asyncio.run(client.request_enrichment("jane@acme.com", "r1"))

    def test_transport_failure_raises_provider_error(self):
        """Test a connection failure becomes a provider error."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = FreckleClient("https://hooks.freckle.test/v1/f/abc", transport=httpx.MockTransport(handler))

        with pytest.raises(ProviderRequestError):
            asyncio.run(client.request_enrichment("jane@acme.com", "r1"))

    def test_mock_mode_without_url(self):
        """Test mock mode acknowledges without a webhook URL."""
        with patch.dict("os.environ", {"FRECKLE_WEBHOOK_URL": ""}):
            client = FreckleClient()

        assert asyncio.run(client.request_enrichment("jane@acme.com", "r1")) == {"status": "OK"}

    def test_interpret_ack(self):
        """Test acknowledgements, immediate answers and empty answers are told apart."""
        assert interpret_ack({"status": "OK"}) is None

        immediate = interpret_ack({"name": "Jane Doe", "linkedinUrl": "https://www.linkedin.com/in/janedoe"})
        assert immediate.success is True
        assert immediate.data.linkedin_url == "https://www.linkedin.com/in/janedoe"

        empty = interpret_ack({"headline": ""})
        assert empty.success is False

    def test_profile_accepts_both_field_spellings(self):
        """Test camelCase and snake_case provider fields map to the same profile."""
        camel = profile_from_payload({"linkedinUrl": "u", "profilePicture": "p"})
        snake = profile_from_payload({"linkedin_url": "u", "profile_picture": "p"})

        assert camel == snake


class TestHubSpotClient:
    """Test the HubSpot CRM client."""

    def setup_method(self):
        self.profile = LinkedInProfile(
            name="Jane Q Doe",
            title="Director of Partnerships",
            company="Acme Corp",
            location="Austin, TX",
            linkedin_url="https://www.linkedin.com/in/janedoe",
        )

    def test_build_properties_drops_empty_fields(self):
        """Test HubSpot properties skip fields the profile lacks."""
        properties = HubSpotClient.build_properties("jane@acme.com", self.profile)

        assert properties == {
            "email": "jane@acme.com",
            "firstname": "Jane",
            "lastname": "Q Doe",
            "jobtitle": "Director of Partnerships",
            "company": "Acme Corp",
            "city": "Austin, TX",
            "amc_linkedin_url": "https://www.linkedin.com/in/janedoe",
        }

    def test_mock_mode(self):
        """Test HubSpot sync runs in mock mode without an API key."""
        with patch.dict("os.environ", {"HUBSPOT_API_KEY": ""}):
            client = HubSpotClient()

        record = asyncio.run(client.sync_profile("jane@acme.com", self.profile))
        assert record["id"] == "mock_12345"

    def test_updates_existing_contact(self):
        """Test an existing contact is found and patched."""
        calls = []

        def handler(request):
            calls.append((request.method, request.url.path))
            if request.url.path.endswith("/search"):
                return httpx.Response(200, json={"results": [{"id": "501"}]})
            return httpx.Response(200, json={"id": "501"})

        client = HubSpotClient(api_key="test-key", transport=httpx.MockTransport(handler))
        record = asyncio.run(client.sync_profile("Jane@Acme.com", self.profile))

        assert record["id"] == "501"
        assert record["action"] == "updated"
        assert calls == [
            ("POST", "/crm/v3/objects/contacts/search"),
            ("PATCH", "/crm/v3/objects/contacts/501"),
        ]

    def test_creates_missing_contact(self):
        """Test a new contact is created when the search finds none."""
        def handler(request):
            if request.url.path.endswith("/search"):
                return httpx.Response(200, json={"results": []})
            assert request.headers["Authorization"] == "Bearer test-key"
            return httpx.Response(201, json={"id": "777"})

        client = HubSpotClient(api_key="test-key", transport=httpx.MockTransport(handler))
        record = asyncio.run(client.sync_profile("jane@acme.com", self.profile))

        assert record == {"id": "777", "action": "created", "properties": record["properties"]}

    def test_api_failure_returns_none(self):
        """Test a HubSpot API failure returns None."""
        transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"message": "expired token"}))
        client = HubSpotClient(api_key="test-key", transport=transport)

        assert asyncio.run(client.sync_profile("jane@acme.com", self.profile)) is None
