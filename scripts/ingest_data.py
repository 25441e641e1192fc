"""
Upload an air-quality CSV file to a running API from the CLI.

    python -m scripts.ingest_data data/AirQualityUCI.csv
    python -m scripts.ingest_data data/AirQualityUCI.csv --async --base-url http://localhost:8000
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any

import requests

DEFAULT_BASE_URL = "http://localhost:8000"
_FINISHED_STATUSES = {"completed", "failed"}


def check_backend(session: requests.Session, base_url: str) -> bool:
    try:
        response = session.get(f"{base_url}/health", timeout=5)
    except requests.RequestException:
        return False
    return response.ok


def upload_sync(
    session: requests.Session,
    base_url: str,
    csv_path: Path,
    *,
    timeout_seconds: float,
) -> dict[str, Any]:
    with csv_path.open("rb") as handle:
        response = session.post(
            f"{base_url}/api/readings/ingest",
            files={"file": (csv_path.name, handle, "text/csv")},
            timeout=timeout_seconds,
        )
    response.raise_for_status()
    return response.json()


def upload_async(
    session: requests.Session,
    base_url: str,
    csv_path: Path,
    *,
    timeout_seconds: float,
    poll_interval_seconds: float = 1.0,
) -> dict[str, Any]:
    """
    Submit an ingestion job and poll its status until it finishes or times out.
    """

    with csv_path.open("rb") as handle:
        response = session.post(
            f"{base_url}/api/ingestion/csv",
            files={"file": (csv_path.name, handle, "text/csv")},
            timeout=30,
        )
    response.raise_for_status()
    job_id = response.json()["job_id"]

    deadline = time.monotonic() + timeout_seconds
    while True:
        status_response = session.get(
            f"{base_url}/api/ingestion-status",
            params={"job_id": job_id},
            timeout=10,
        )
        status_response.raise_for_status()
        job = status_response.json()["jobs"][0]
        if job["status"] in _FINISHED_STATUSES:
            return job
        if time.monotonic() >= deadline:
            raise TimeoutError(f"Ingestion job {job_id} did not finish in {timeout_seconds}s")
        time.sleep(poll_interval_seconds)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Upload an air-quality CSV file for ingestion.")
    parser.add_argument("csv_path", type=Path, help="Semicolon-separated CSV file to upload.")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="API base URL.")
    parser.add_argument(
        "--async",
        dest="use_async",
        action="store_true",
        help="Submit as a background job and poll for completion.",
    )
    parser.add_argument("--timeout", type=float, default=60.0, help="Timeout in seconds.")
    args = parser.parse_args(argv)

    if not args.csv_path.is_file():
        print(f"CSV file not found: {args.csv_path}", file=sys.stderr)
        return 1

    base_url = args.base_url.rstrip("/")
    with requests.Session() as session:
        if not check_backend(session, base_url):
            print(f"Backend is not reachable at {base_url}", file=sys.stderr)
            return 1

        try:
            if args.use_async:
                payload = upload_async(session, base_url, args.csv_path, timeout_seconds=args.timeout)
                download_path = (payload.get("result_payload") or {}).get("error_file_download_url")
            else:
                payload = upload_sync(session, base_url, args.csv_path, timeout_seconds=args.timeout)
                download_path = payload.get("error_file_download_url")
        except requests.HTTPError as exc:
            print(f"Ingestion failed status={exc.response.status_code}: {exc.response.text}", file=sys.stderr)
            return 1
        except (requests.RequestException, TimeoutError) as exc:
            print(f"Ingestion failed: {exc}", file=sys.stderr)
            return 1

    print(json.dumps(payload, indent=2, default=str))
    if download_path:
        print(f"Error file available at: {base_url}{download_path}")
    if payload.get("status") == "failed":
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
