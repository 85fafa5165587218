#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json

import requests


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed sample orders into a running OrderBoard (sql backend)")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--count", type=int, default=8)
    parser.add_argument("--restaurant-id", default=None)
    args = parser.parse_args()

    params: dict[str, str | int] = {"count": args.count}
    if args.restaurant_id:
        params["restaurant_id"] = args.restaurant_id

    resp = requests.post(f"{args.base_url}/demo/seed", params=params, timeout=60)
    resp.raise_for_status()
    data = resp.json()
    print(json.dumps(data, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
