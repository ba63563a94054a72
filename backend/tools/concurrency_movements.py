import os
import sys

import requests
import concurrent.futures
import argparse

BASE = os.environ.get("STOCKROOM_BASE", "http://127.0.0.1:3001")

def movement_task(i, product_id, kind, qty):
    payload = {"product_id": product_id, "kind": kind, "quantity": qty, "reason": f"load-{i}"}
    try:
        r = requests.post(f"{BASE}/api/movements", json=payload, timeout=30)
        return (i, r.status_code, r.text)
    except Exception as e:
        return (i, "ERR", str(e))

def create_product(quantity):
    r = requests.post(
        f"{BASE}/api/products",
        json={"name": "Concurrency probe", "unit": "pc", "quantity": quantity},
        timeout=10,
    )
    r.raise_for_status()
    return r.json()["id"]

def run_concurrent(workers, requests_per_worker, product_id, kind, qty):
    before = requests.get(f"{BASE}/api/products/{product_id}", timeout=10).json()["quantity"]
    total = workers * requests_per_worker
    print(f"Running movement test: workers={workers}, total={total}, kind={kind}, qty={qty}, start={before}")
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(movement_task, i, product_id, kind, qty) for i in range(total)]
        results = [f.result() for f in futures]
    failures = [r for r in results if r[1] != 201]
    for r in failures:
        print(r)
    after = requests.get(f"{BASE}/api/products/{product_id}", timeout=10).json()["quantity"]
    ok = total - len(failures)
    if kind == "in":
        expected = before + ok * qty
    elif kind == "out":
        expected = max(0, before - ok * qty)
    else:
        expected = qty
    print(f"Succeeded: {ok}/{total}  quantity {before} -> {after} (expected {expected})")
    return after == expected

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Fire concurrent movements at one product and check for lost updates.")
    parser.add_argument("--product-id", default=None, help="existing product; a fresh one is created if omitted")
    parser.add_argument("--start", type=int, default=0, help="initial quantity of a created product")
    parser.add_argument("--kind", choices=["in", "out", "adjust"], default="in")
    parser.add_argument("--qty", type=int, default=1)
    parser.add_argument("--workers", type=int, default=8)
    parser.add_argument("--per-worker", type=int, default=10)
    args = parser.parse_args()

    pid = args.product_id or create_product(args.start)
    ok = run_concurrent(args.workers, args.per_worker, pid, args.kind, args.qty)
    sys.exit(0 if ok else 1)
