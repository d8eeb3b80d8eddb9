#!/usr/bin/env python3
"""Load test script: shows the lookup endpoint's rate limit in action.

RUN:  python scripts/load_test_rate_limit.py [BASE_URL]

Fires TOTAL_REQUESTS lookups for a URL that is not a badge URL.  These are
rejected before any upstream call (404), so the script never touches the
certification platform; once the bucket is empty the service answers 429.

Prerequisites:
  - The API must be running: uvicorn app.main:app --port 8000
"""

from __future__ import annotations

import sys
import time

import httpx

BASE_URL = "http://localhost:8000"
TOTAL_REQUESTS = 30


def main() -> None:
    base_url = sys.argv[1] if len(sys.argv) > 1 else BASE_URL
    print("Badge lookup rate limit test")
    print("=" * 50)
    print(f"Target: {base_url}/v1/badges/lookup")
    print(f"Total requests: {TOTAL_REQUESTS}")
    print()

    results: dict[int, int] = {}
    start = time.monotonic()

    with httpx.Client(base_url=base_url, timeout=10) as client:
        for i in range(TOTAL_REQUESTS):
            resp = client.post(
                "/v1/badges/lookup",
                json={"url": "https://example.com/not-a-badge", "email": "x@example.com"},
            )
            results[resp.status_code] = results.get(resp.status_code, 0) + 1
            if (i + 1) % 10 == 0:
                print(f"  Sent {i + 1}/{TOTAL_REQUESTS} requests...")

    elapsed = time.monotonic() - start

    print()
    print(f"Results after {TOTAL_REQUESTS} requests ({elapsed:.2f}s):")
    print("─" * 40)
    for status_code in sorted(results):
        print(f"  {status_code}: {results[status_code]:>4}")
    print()

    if results.get(429, 0) > 0:
        print("Rate limiting is working: lookups were throttled after the burst.")
    else:
        print("WARNING: No requests were throttled.")
        print("Check BADGE_LOOKUP_RATE_CAPACITY / BADGE_LOOKUP_RATE_REFILL.")


if __name__ == "__main__":
    main()
