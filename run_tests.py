"""
Test runner script for the recognition service.
"""
import subprocess
import sys
import time
import requests
from pathlib import Path

SERVICE_URL = "http://localhost:8010"


def wait_for_service(url: str, timeout: int = 30) -> bool:
    """Wait for a service to become available."""
    print(f"Waiting for service at {url}...")

    for i in range(timeout):
        try:
            response = requests.get(f"{url}/health", timeout=2)
            if response.status_code == 200:
                print(f"✓ Service ready at {url}")
                return True
        except requests.exceptions.RequestException:
            pass

        if i < timeout - 1:
            time.sleep(1)

    print(f"✗ Service at {url} did not become ready in {timeout}s")
    return False


def run_unit_tests():
    """Run unit tests."""
    print("Running unit tests...")
    result = subprocess.run([
        sys.executable, "-m", "pytest",
        "tests",
        "-v"
    ], cwd=Path(__file__).parent)

    return result.returncode == 0


def run_live_checks():
    """Run checks against a running service."""
    print("Checking if the service is available...")

    if not wait_for_service(SERVICE_URL, timeout=5):
        print("⚠ Service is not available. Skipping live checks.")
        print("To run live checks, start the service with:")
        print("  python run_dev.py")
        return True  # Don't fail the overall test run

    print("Running live checks...")
    result = subprocess.run([
        sys.executable, "verify_recognition.py", SERVICE_URL
    ], cwd=Path(__file__).parent)

    return result.returncode == 0


def main():
    """Run all tests."""
    print("Sign Translator - Recognition Service Tests")
    print("=" * 50)

    success = True

    if not run_unit_tests():
        print("✗ Unit tests failed!")
        success = False
    else:
        print("✓ Unit tests passed!")

    print()

    if not run_live_checks():
        print("✗ Live checks failed!")
        success = False
    else:
        print("✓ Live checks passed!")

    print("\n" + "=" * 50)
    if success:
        print("✓ All tests passed!")
        sys.exit(0)
    else:
        print("✗ Some tests failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
