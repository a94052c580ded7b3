#!/usr/bin/env python3
"""
Smoke test for a running LinkedIn Enrichment Correlator.

Start the service with ``python app.py`` and run this script against it.
"""

import requests
import time
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

SMOKE_EMAIL = "smoke.test@example.com"

def test_health_endpoint(base_url="http://localhost:8000"):
    """Test the health check endpoint."""
    try:
        response = requests.get(f"{base_url}/health", timeout=10)
        if response.status_code == 200:
            data = response.json()
            print(f"✅ Health check passed: {data}")
            return True
        else:
            print(f"❌ Health check failed: {response.status_code}")
            return False
    except requests.exceptions.RequestException as e:
        print(f"❌ Health check error: {e}")
        return False

def test_linkedin_webhook(base_url="http://localhost:8000"):
    """Deliver a provider result the way Freckle would."""
    sample_result = {
        "email": SMOKE_EMAIL.upper(),
        "name": "Smoke Test",
        "title": "Director of Engineering",
        "company": "Test Company Inc",
        "linkedinUrl": "https://www.linkedin.com/in/smoke-test",
        "location": "Remote",
        "headline": "Testing things"
    }

    try:
        response = requests.post(
            f"{base_url}/webhooks/linkedin",
            json=sample_result,
            timeout=30
        )

        if response.status_code == 200:
            data = response.json()
            print(f"✅ LinkedIn webhook test passed: {data}")
            return True
        else:
            print(f"❌ LinkedIn webhook test failed: {response.status_code}")
            print(f"Response: {response.text}")
            return False

    except requests.exceptions.RequestException as e:
        print(f"❌ LinkedIn webhook test error: {e}")
        return False

def test_poll_result(base_url="http://localhost:8000"):
    """Poll for the result delivered above, twice: reads must not consume it."""
    try:
        for attempt in (1, 2):
            response = requests.get(f"{base_url}/api/linkedin-result/{SMOKE_EMAIL}", timeout=10)
            if response.status_code != 200:
                print(f"❌ Poll {attempt} failed: {response.status_code}")
                return False

        data = response.json()
        if data.get("success") and data.get("data", {}).get("name") == "Smoke Test":
            print(f"✅ Poll test passed: {data}")
            return True
        print(f"❌ Unexpected poll result: {data}")
        return False

    except requests.exceptions.RequestException as e:
        print(f"❌ Poll test error: {e}")
        return False

def test_not_ready(base_url="http://localhost:8000"):
    """An email nobody delivered must come back as not ready."""
    try:
        response = requests.get(f"{base_url}/api/linkedin-result/never.delivered@example.com", timeout=10)
        if response.status_code == 404:
            print("✅ Not-ready test passed")
            return True
        print(f"❌ Expected 404, got {response.status_code}")
        return False
    except requests.exceptions.RequestException as e:
        print(f"❌ Not-ready test error: {e}")
        return False

def test_malformed_webhook(base_url="http://localhost:8000"):
    """A webhook without an email must be rejected."""
    try:
        response = requests.post(f"{base_url}/webhooks/linkedin", json={"name": "No Email"}, timeout=10)
        if response.status_code == 400:
            print("✅ Malformed webhook test passed")
            return True
        print(f"❌ Expected 400, got {response.status_code}")
        return False
    except requests.exceptions.RequestException as e:
        print(f"❌ Malformed webhook test error: {e}")
        return False

def main():
    """Run all tests."""
    print("🚀 Testing LinkedIn Enrichment Correlator")
    print("=" * 50)

    base_url = os.getenv("RESULT_SERVICE_URL", "http://localhost:8000")

    # Wait for app to start
    print("⏳ Waiting for application to start...")
    time.sleep(5)

    tests = [
        ("Health Check", lambda: test_health_endpoint(base_url)),
        ("LinkedIn Webhook", lambda: test_linkedin_webhook(base_url)),
        ("Poll Result", lambda: test_poll_result(base_url)),
        ("Not Ready", lambda: test_not_ready(base_url)),
        ("Malformed Webhook", lambda: test_malformed_webhook(base_url))
    ]

    passed = 0
    total = len(tests)

    for test_name, test_func in tests:
        print(f"\n🧪 Running {test_name}...")
        if test_func():
            passed += 1
        else:
            print(f"❌ {test_name} failed")

    print("\n" + "=" * 50)
    print(f"📊 Test Results: {passed}/{total} tests passed")

    if passed == total:
        print("🎉 All tests passed! Application is working correctly.")
        return 0
    else:
        print("⚠️  Some tests failed. Check the application logs for details.")
        return 1

if __name__ == "__main__":
    sys.exit(main())
