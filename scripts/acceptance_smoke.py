"""
Acceptance smoke checks for deepwriting.

Usage:
  DATABASE_URL=sqlite:///./data/acceptance_deepwriting.db PYTHONPATH=src python scripts/acceptance_smoke.py
  DATABASE_URL=sqlite:///./data/acceptance_deepwriting.db PYTHONPATH=src python scripts/acceptance_smoke.py --with-external
"""

from __future__ import annotations

import argparse
import os
import sys
import uuid
from dataclasses import dataclass
from typing import Callable

from fastapi.testclient import TestClient


@dataclass
class CheckResult:
    name: str
    passed: bool
    detail: str


def _ok(name: str, detail: str) -> CheckResult:
    return CheckResult(name=name, passed=True, detail=detail)


def _fail(name: str, detail: str) -> CheckResult:
    return CheckResult(name=name, passed=False, detail=detail)


def run_check(name: str, fn: Callable[[], CheckResult]) -> CheckResult:
    try:
        return fn()
    except Exception as exc:  # pragma: no cover - smoke tool
        return _fail(name, f"exception: {exc}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Run acceptance smoke checks.")
    parser.add_argument(
        "--with-external",
        action="store_true",
        help="Run checks that call the hosted LLM API.",
    )
    args = parser.parse_args()

    database_url = os.getenv("DATABASE_URL", "sqlite:///./data/acceptance_deepwriting.db")
    os.environ["DATABASE_URL"] = database_url
    os.environ.setdefault("NO_PROXY", "*")

    from deepwriting.core.database import init_db
    from deepwriting.main import app

    init_db()

    client = TestClient(app)
    results: list[CheckResult] = []
    email = f"smoke-{uuid.uuid4().hex[:8]}@example.com"
    state: dict = {}

    def check_health() -> CheckResult:
        resp = client.get("/health")
        if resp.status_code != 200:
            return _fail("GET /health", f"status={resp.status_code}, body={resp.text[:200]}")
        return _ok("GET /health", "healthy")

    def check_register_login() -> CheckResult:
        resp = client.post("/api/auth/register", json={"email": email, "password": "smoke-pass"})
        if resp.status_code != 200:
            return _fail("register/login", f"register status={resp.status_code}, body={resp.text[:200]}")
        resp = client.post("/api/auth/login", json={"email": email, "password": "smoke-pass"})
        if resp.status_code != 200:
            return _fail("register/login", f"login status={resp.status_code}, body={resp.text[:200]}")
        state["headers"] = {"Authorization": f"Bearer {resp.json()['token']}"}
        return _ok("register/login", email)

    def check_workspace_round_trip() -> CheckResult:
        headers = state["headers"]
        project = client.post("/api/projects", json={"title": "smoke"}, headers=headers).json()
        workspace = {
            "materials": [{"name": "A", "content": "x", "importance": 9}],
            "content": "你好 世界",
            "titles": [{"id": "t1", "title": "Foo"}],
            "selectedTitleId": "t1",
        }
        resp = client.put(
            f"/api/projects/{project['id']}/workspace",
            json={"workspace": workspace},
            headers=headers,
        )
        if resp.status_code != 200:
            return _fail("workspace round trip", f"save status={resp.status_code}")
        loaded = client.get(f"/api/projects/{project['id']}/workspace", headers=headers).json()["workspace"]
        if loaded["materials"][0]["importance"] != 5 or loaded["selectedTitleId"] is None:
            return _fail("workspace round trip", f"unexpected workspace: {loaded}")
        return _ok("workspace round trip", f"project={project['id']}")

    def check_outline_external() -> CheckResult:
        chunks = []
        with client.stream(
            "POST",
            "/api/ai/outline",
            json={"materials": [], "style": "简洁", "requirements": "约 800 字"},
            headers=state["headers"],
        ) as resp:
            if resp.status_code != 200:
                return _fail("POST /api/ai/outline", f"status={resp.status_code}")
            for text in resp.iter_text():
                chunks.append(text)
        return _ok("POST /api/ai/outline", f"streamed {len(''.join(chunks))} chars")

    results.append(run_check("GET /health", check_health))
    results.append(run_check("register/login", check_register_login))
    if "headers" in state:
        results.append(run_check("workspace round trip", check_workspace_round_trip))
        if args.with_external:
            results.append(run_check("POST /api/ai/outline", check_outline_external))

    passed = sum(1 for item in results if item.passed)
    failed = len(results) - passed

    print("\nAcceptance Smoke Report")
    print("=" * 24)
    for item in results:
        status = "PASS" if item.passed else "FAIL"
        print(f"[{status}] {item.name}: {item.detail}")

    print("-" * 24)
    print(f"passed={passed}, failed={failed}, total={len(results)}")
    return 0 if failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
