"""Shared fixtures: a fake npm registry served through httpx.MockTransport."""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from dep_impact_analyzer.config import RegistrySettings
from dep_impact_analyzer.registry_client import RegistryClient

REGISTRY_URL = "https://registry.test"


def make_packument(
    name: str,
    latest: str,
    *,
    description: Any = "",
    repository: Any = None,
    license: Any = "MIT",
    deprecated: str | bool | None = None,
    latest_deprecated: str | None = None,
    published: str = "2024-01-02T03:04:05.000Z",
) -> dict[str, Any]:
    """Build a minimal packument like the npm registry returns."""
    version_entry: dict[str, Any] = {"name": name, "version": latest}
    if latest_deprecated is not None:
        version_entry["deprecated"] = latest_deprecated
    document: dict[str, Any] = {
        "name": name,
        "description": description,
        "dist-tags": {"latest": latest},
        "versions": {"0.0.1": {"name": name, "version": "0.0.1"}, latest: version_entry},
        "time": {"created": "2015-01-01T00:00:00.000Z", latest: published},
        "license": license,
    }
    if repository is not None:
        document["repository"] = repository
    if deprecated is not None:
        document["deprecated"] = deprecated
    return document


@dataclass
class FakeRegistry:
    """In-memory registry recording every request it serves.

    Attributes:
        packages: Packuments keyed by package name.
        failures: Per-name queue of status codes or exceptions served before
            falling back to ``packages``.
        delay: Seconds each response takes.
    """

    packages: dict[str, dict[str, Any]] = field(default_factory=dict)
    failures: dict[str, list[int | type[Exception]]] = field(default_factory=dict)
    delay: float = 0.0
    calls: Counter[str] = field(default_factory=Counter)
    requests: list[httpx.Request] = field(default_factory=list)
    in_flight: int = 0
    max_in_flight: int = 0

    def add(self, name: str, latest: str, **kwargs: Any) -> None:
        self.packages[name] = make_packument(name, latest, **kwargs)

    def fail(self, name: str, *outcomes: int | type[Exception]) -> None:
        self.failures.setdefault(name, []).extend(outcomes)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    async def handler(self, request: httpx.Request) -> httpx.Response:
        name = request.url.path.lstrip("/")
        self.calls[name] += 1
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            queued = self.failures.get(name)
            if queued:
                outcome = queued.pop(0)
                if isinstance(outcome, int):
                    return httpx.Response(outcome, json={"error": "failure"})
                raise outcome("simulated failure", request=request)
            if name not in self.packages:
                return httpx.Response(404, json={"error": "Not found"})
            return httpx.Response(200, json=self.packages[name])
        finally:
            self.in_flight -= 1

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class RecordingSleep:
    """Sleep replacement that records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def settings() -> RegistrySettings:
    return RegistrySettings(base_url=REGISTRY_URL, max_concurrent=4, timeout=5.0, retry_attempts=2, retry_base_delay=1.0)


@pytest.fixture
def client(registry: FakeRegistry, settings: RegistrySettings, sleeper: RecordingSleep) -> RegistryClient:
    return RegistryClient(settings, transport=registry.transport(), sleep=sleeper)
