"""Print the connections a running gateway serves.

Usage:
    export GATEWAY_URL=http://localhost:8000/api
    python scripts/show_connections.py            # list everything
    python scripts/show_connections.py --reload   # force a reload first
    GATEWAY_TOKEN=... python scripts/show_connections.py   # postauth mode
"""
from __future__ import annotations

import os
import sys
from typing import Any, Dict

import httpx

GATEWAY_URL = os.getenv("GATEWAY_URL", "http://localhost:8000/api")

client = httpx.Client(timeout=30)


def _headers() -> Dict[str, str]:
    token = os.getenv("GATEWAY_TOKEN")
    return {"Authorization": f"Bearer {token}"} if token else {}


def gateway_reload() -> Dict[str, Any]:
    resp = client.post(f"{GATEWAY_URL}/reload", params={"force": "true"}, headers=_headers())
    resp.raise_for_status()
    return resp.json()


def gateway_list() -> Dict[str, Any]:
    resp = client.get(f"{GATEWAY_URL}/configurations", headers=_headers())
    resp.raise_for_status()
    return resp.json()


def main() -> int:
    try:
        if "--reload" in sys.argv[1:]:
            status = gateway_reload()["status"]
            print(f"reloaded {status['connection_count']} connection(s) from {status['path']}")
        ctx = gateway_list()
    except httpx.HTTPStatusError as exc:
        print(f"gateway error {exc.response.status_code}: {exc.response.text}", file=sys.stderr)
        return 1

    print(f"provider={ctx['provider']} identifier={ctx['identifier']}")
    for name, record in sorted(ctx["configurations"].items()):
        params = ", ".join(f"{k}={v}" for k, v in sorted(record["parameters"].items()))
        print(f"  {name:<24} {record['protocol']:<8} {params}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
