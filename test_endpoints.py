import httpx
import asyncio
import json
import os

BASE_URL = "http://127.0.0.1:8000"
TEST_SEASON = "2025"
TEST_ROSTER_ID = 1  # Assuming a default roster ID for a league
CRON_SECRET = os.environ.get("CRON_SECRET", "")

async def check_endpoint(client: httpx.AsyncClient, method: str, url: str, endpoint_name: str, expected_status: int = 200, headers=None):
    print(f"\n--- Checking {endpoint_name} ---")
    print(f"URL: {method} {url}")
    try:
        response = await client.request(method, url, headers=headers, timeout=60.0)  # history walks are slow when cold
        print(f"Status Code: {response.status_code}")
        print(f"Response: {response.json()}")
        if response.status_code != expected_status:
            print(f"ISSUE: Expected status {expected_status}, got {response.status_code}")
            return False
    except httpx.RequestError as e:
        print(f"ISSUE: Request failed: {e}")
        return False
    except json.JSONDecodeError:
        print(f"ISSUE: Could not decode JSON response: {response.text}")
        return False
    return True

async def main():
    await asyncio.sleep(5)  # Give the server some time to start up
    async with httpx.AsyncClient() as client:
        results = [
            await check_endpoint(client, "GET", f"{BASE_URL}/health", "health"),
            await check_endpoint(client, "GET", f"{BASE_URL}/taxi/validate?season={TEST_SEASON}&roster_id={TEST_ROSTER_ID}", "validate_taxi"),
            await check_endpoint(client, "GET", f"{BASE_URL}/taxi/validate?season={TEST_SEASON}&roster_id=0", "validate_taxi (bad roster)", 400),
            await check_endpoint(client, "GET", f"{BASE_URL}/taxi/flags", "taxi_flags (latest recorded run)"),
            await check_endpoint(client, "GET", f"{BASE_URL}/taxi/report", "taxi_report (live check)"),
            await check_endpoint(client, "GET", f"{BASE_URL}/taxi/cron", "taxi_cron (no secret)", 401),
            await check_endpoint(client, "GET", f"{BASE_URL}/draft/ownership", "draft_ownership"),
        ]
        if CRON_SECRET:
            results.append(await check_endpoint(
                client, "POST", f"{BASE_URL}/taxi/cron", "taxi_cron", headers={"x-cron-secret": CRON_SECRET}
            ))

    print(f"\n{sum(results)}/{len(results)} endpoints answered as expected")

if __name__ == "__main__":
    asyncio.run(main())
