#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json

import requests


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay a database webhook payload against OrderBoard")
    parser.add_argument("payload_file", help="JSON file with type/table/record/old_record")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--secret", default="ob-webhook-dev-secret")
    args = parser.parse_args()

    with open(args.payload_file, encoding="utf-8") as fh:
        payload = json.load(fh)

    resp = requests.post(
        f"{args.base_url}/realtime/webhook",
        json=payload,
        headers={"X-Webhook-Secret": args.secret},
        timeout=30,
    )
    resp.raise_for_status()
    print(json.dumps(resp.json(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
