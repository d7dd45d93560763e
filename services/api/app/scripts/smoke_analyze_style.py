#!/usr/bin/env python3
from __future__ import annotations

import argparse
import base64
import json
import mimetypes
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Smoke test the image -> style analysis -> recommendations path.")
    parser.add_argument("--image", required=True, help="Path to local image file.")
    parser.add_argument("--budget", default="medium", help="budget, medium or luxury.")
    parser.add_argument("--api-base", default="http://localhost:8000", help="Style API base URL.")
    parser.add_argument("--json", action="store_true", help="Also dump the raw response.")
    return parser.parse_args()


def _content_type_for(path: Path) -> str:
    guess, _ = mimetypes.guess_type(str(path))
    return guess or "image/jpeg"


def main() -> int:
    load_dotenv()
    args = parse_args()

    image_path = Path(args.image).expanduser().resolve()
    if not image_path.exists():
        print(f"error: image does not exist: {image_path}", file=sys.stderr)
        return 2

    encoded = base64.b64encode(image_path.read_bytes()).decode("ascii")
    data_uri = f"data:{_content_type_for(image_path)};base64,{encoded}"
    endpoint = f"{args.api_base.rstrip('/')}/v1/analyze-style"
    print(f"POST {endpoint} budget={args.budget}")
    try:
        resp = httpx.post(endpoint, json={"image": data_uri, "budget": args.budget}, timeout=180)
    except Exception as exc:
        print(f"error: API request failed: {exc}", file=sys.stderr)
        return 1

    payload = resp.json()
    if resp.status_code != 200:
        print(f"error: HTTP {resp.status_code}: {payload.get('error')}", file=sys.stderr)
        return 1

    core, tips = payload["recommendations"]
    print(f"aesthetic: {core['aesthetic']}")
    print(f"palette: {', '.join(core['color_palette'])}")
    for idx, item in enumerate(core["items"], start=1):
        if item is None:
            print(f"  #{idx}: unavailable")
            continue
        print(f"  #{idx}: {item['name']} ~${item['price']}")
        for store, url in item["shop_links"].items():
            print(f"      {store}: {url}")
    for tip in tips["items"]:
        print(f"  tip: {tip['description']}")

    if args.json:
        print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
