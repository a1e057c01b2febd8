"""
Simple verification script for a running recognition service.
"""
import requests
import sys

SERVICE_URL = "http://localhost:8010"
HELLO_FEATURES = "[0.8, 0.9, 0.7, 0.85, 0.92]"
SENTINELS = {"unknown", "no"}


def check_result_schema(result_data, expected_source=None):
    """Verify the recognition result schema."""
    required_fields = ["text", "confidence", "source", "timestamp", "gestures", "low_confidence"]

    for field in required_fields:
        if field not in result_data:
            print(f"✗ Missing required field: {field}")
            return False

    if not result_data["text"] or result_data["text"] in SENTINELS:
        print(f"✗ Result text is empty or a non-answer: {result_data['text']!r}")
        return False

    if result_data["source"] not in ("local", "remote", "remote-degraded"):
        print(f"✗ Unknown source: {result_data['source']}")
        return False

    if expected_source and result_data["source"] != expected_source:
        print(f"✗ Wrong source. Expected {expected_source}, got {result_data['source']}")
        return False

    if not (0.0 <= result_data["confidence"] <= 1.0):
        print(f"✗ Invalid confidence: {result_data['confidence']}")
        return False

    if result_data["source"] == "remote-degraded" and not result_data["low_confidence"]:
        print("✗ Degraded result not flagged as low confidence")
        return False

    return True


def verify_service(service_url):
    """Check health, a local match and a text recognition."""
    print(f"Testing {service_url}...")

    try:
        health_response = requests.get(f"{service_url}/health", timeout=10)
        if health_response.status_code != 200 or health_response.json()["status"] != "healthy":
            print(f"✗ Health check failed: {health_response.text}")
            return False
        print(f"  ✓ Health check passed ({health_response.json()['dataset_entries']} dataset entries)")

        local_response = requests.post(
            f"{service_url}/recognize",
            files={"file": ("frame.jpg", b"\xff\xd8\xff\xe0", "image/jpeg")},
            data={"features": HELLO_FEATURES},
            timeout=30
        )
        if local_response.status_code != 200:
            print(f"✗ Recognition failed: {local_response.status_code}")
            print(f"  Response: {local_response.text}")
            return False
        if not check_result_schema(local_response.json(), expected_source="local"):
            return False
        print(f"  ✓ Local match: {local_response.json()['text']}")

        text_response = requests.post(
            f"{service_url}/recognize",
            data={"text": "open hand moving away from the forehead", "features": "[0, 0, 0, 0, 0]"},
            timeout=60
        )
        if text_response.status_code != 200:
            print(f"✗ Text recognition failed: {text_response.status_code}")
            return False
        result = text_response.json()
        if not check_result_schema(result):
            return False

        flag = " (LOW CONFIDENCE)" if result["low_confidence"] else ""
        print(f"  ✓ Text recognition: {result['text']} via {result['source']}, confidence={result['confidence']:.2f}{flag}")
        return True

    except requests.exceptions.RequestException as e:
        print(f"✗ Error testing {service_url}: {e}")
        return False


def main():
    """Run the verification."""
    print("Sign Translator - Recognition Service Verification")
    print("=" * 60)

    service_url = sys.argv[1] if len(sys.argv) > 1 else SERVICE_URL
    if verify_service(service_url):
        print("✓ All verification checks passed!")
        sys.exit(0)

    print("✗ Some verification checks failed!")
    sys.exit(1)


if __name__ == "__main__":
    main()
