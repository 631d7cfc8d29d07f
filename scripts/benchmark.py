"""HTTP benchmark for article listings, anonymous and signed in."""
import argparse
import asyncio
import statistics
import time

import httpx

BASE_URL = "http://localhost:8000"
# Matches scripts/seed.py
LOGIN = {"email": "user_0000@example.com", "password": "password123"}

PUBLIC_ENDPOINTS = [
    "/articles",
    "/articles?tag=python",
    "/articles?author=user_0001",
    "/tags",
    "/health",
]
VIEWER_ENDPOINTS = [
    "/articles",
    "/articles?feed=true",
    "/articles?favorite=true",
]


async def benchmark_endpoint(client: httpx.AsyncClient, path: str, headers: dict, iterations: int) -> dict:
    times = []
    query_counts = []
    errors = 0

    for _ in range(iterations):
        start = time.perf_counter()
        try:
            resp = await client.get(f"{BASE_URL}{path}", headers=headers)
        except httpx.HTTPError:
            errors += 1
            continue
        elapsed = (time.perf_counter() - start) * 1000
        if resp.status_code != 200:
            errors += 1
            continue
        times.append(elapsed)
        query_counts.append(int(resp.headers.get("x-query-count", 0)))

    if not times:
        return {"error": f"All {iterations} requests failed"}

    ordered = sorted(times)
    return {
        "avg_ms": statistics.mean(times),
        "p50_ms": ordered[len(ordered) // 2],
        "p95_ms": ordered[int(len(ordered) * 0.95)],
        "queries": statistics.mean(query_counts),
        "errors": errors,
    }


def _print_row(name: str, result: dict) -> None:
    if "error" in result:
        print(f"{name:<45} {'ERROR':>8}")
        return
    print(
        f"{name:<45} "
        f"{result['avg_ms']:>7.1f}ms "
        f"{result['p50_ms']:>7.1f}ms "
        f"{result['p95_ms']:>7.1f}ms "
        f"{result['queries']:>8.1f} "
        f"{result['errors']:>4}"
    )


async def run_benchmark(iterations: int = 50):
    print(f"Blog API benchmark: {iterations} iterations per endpoint against {BASE_URL}")

    async with httpx.AsyncClient() as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            resp.raise_for_status()
        except httpx.HTTPError as e:
            print(f"ERROR: Cannot reach {BASE_URL}: {e}")
            return

        resp = await client.post(f"{BASE_URL}/users/login", json=LOGIN)
        viewer_headers = {"Authorization": f"Bearer {resp.json()['token']}"} if resp.status_code == 200 else None

        print(f"\n{'Endpoint':<45} {'Avg':>8} {'P50':>8} {'P95':>8} {'Queries':>8} {'Err':>4}")
        print("-" * 86)
        for path in PUBLIC_ENDPOINTS:
            _print_row(f"GET {path}", await benchmark_endpoint(client, path, {}, iterations))
        if viewer_headers is None:
            print("(login failed; signed-in endpoints skipped; run scripts/seed.py first)")
            return
        for path in VIEWER_ENDPOINTS:
            _print_row(f"GET {path} [viewer]", await benchmark_endpoint(client, path, viewer_headers, iterations))


def main():
    global BASE_URL
    parser = argparse.ArgumentParser(description="Benchmark blog API")
    parser.add_argument("-n", "--iterations", type=int, default=50, help="Iterations per endpoint")
    parser.add_argument("--base-url", default=BASE_URL, help="API base URL")
    args = parser.parse_args()

    BASE_URL = args.base_url
    asyncio.run(run_benchmark(args.iterations))


if __name__ == "__main__":
    main()
