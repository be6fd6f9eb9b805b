"""Async registry client with caching, single-flight lookups and retries.

Purpose
-------
Resolve package names to the registry metadata the analysis needs while
keeping network traffic to a minimum: every package is requested at most
once per client lifetime, concurrent lookups for the same package share a
single in-flight request, and the number of simultaneous HTTP requests is
bounded across the whole client.

Contents
--------
* :class:`RegistryClient` - The client; ``fetch_one`` and ``fetch_batch``
* :func:`extract_record` - Reduce a validated packument to a RegistryRecord

System Role
-----------
The I/O boundary of the analysis pipeline. The analysis stage talks to the
registry only through :meth:`RegistryClient.fetch_batch`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .config import RegistrySettings
from .errors import (
    InvalidInputError,
    PackageNotFoundError,
    RateLimitedError,
    RegistryError,
    RegistryTimeoutError,
    RegistryTransportError,
)
from .models import BatchResult, CacheStats, ErrorKind, FetchFailure, RegistryRecord
from .schemas import PackumentSchema

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]

_DEPRECATED_WITHOUT_MESSAGE = "This package is deprecated"


class _EntryState(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(slots=True)
class _CacheEntry:
    """Tagged cache state for one normalized package name."""

    state: _EntryState
    task: asyncio.Task[RegistryRecord] | None = None
    record: RegistryRecord | None = None
    error: RegistryError | None = None


def _first(value: Any) -> Any:
    """Reduce a legacy list-valued field to its first entry."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _repository_url(repository: str | dict[str, Any] | list[Any] | None) -> str | None:
    """Return the repository URL from a string, ``{type, url}`` object or list of them."""
    repository = _first(repository)
    if isinstance(repository, dict):
        url = repository.get("url")
        return url if isinstance(url, str) and url else None
    return repository if isinstance(repository, str) and repository else None


def _license_name(license_field: str | dict[str, Any] | list[Any] | None) -> str | None:
    """Return the SPDX id from a string, legacy ``{type, url}`` object or list of them."""
    license_field = _first(license_field)
    if isinstance(license_field, dict):
        kind = license_field.get("type")
        return kind if isinstance(kind, str) and kind else None
    return license_field if isinstance(license_field, str) and license_field else None


def _deprecation_message(value: str | bool | None) -> str | None:
    if isinstance(value, str):
        return value or None
    return _DEPRECATED_WITHOUT_MESSAGE if value else None


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def extract_record(requested_name: str, packument: PackumentSchema) -> RegistryRecord:
    """Reduce a validated packument to the fields the analysis reads.

    The deprecation message is taken from the package itself or, failing
    that, from the version the ``latest`` tag points at.

    Args:
        requested_name: Name used for the lookup; used when the document
            carries no name.
        packument: Validated registry document.

    Returns:
        The registry record.
    """
    latest = packument.latest
    deprecated = _deprecation_message(packument.deprecated) or _deprecation_message(
        packument.latest_manifest().deprecated
    )
    return RegistryRecord(
        name=packument.name or requested_name,
        latest_version=latest,
        description=packument.description or "",
        repository_url=_repository_url(packument.repository),
        homepage=packument.homepage,
        license=_license_name(packument.license),
        deprecated_message=deprecated,
        published_at=_parse_timestamp(packument.time.get(latest)) if latest else None,
    )


class RegistryClient:
    """Registry client owning a cache of records, errors and in-flight lookups.

    The cache table maps the lower-cased package name to exactly one tagged
    entry (pending, resolved or failed). It is only touched by code running
    on the event loop between ``await`` points, so checking for an entry and
    inserting a pending one cannot interleave with another lookup.

    Args:
        settings: Client settings; defaults to :class:`RegistrySettings()`.
        transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in
            tests.
        sleep: Coroutine used for backoff delays.
    """

    def __init__(
        self,
        settings: RegistrySettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.settings = settings or RegistrySettings()
        self._transport = transport
        self._sleep = sleep
        self._entries: dict[str, _CacheEntry] = {}
        self._semaphore: asyncio.Semaphore | None = None
        self._semaphore_loop: asyncio.AbstractEventLoop | None = None

    def __repr__(self) -> str:
        return (
            f"RegistryClient(base_url={self.settings.base_url!r}, "
            f"max_concurrent={self.settings.max_concurrent}, "
            f"cache_size={self.cache_stats().cache_size})"
        )

    # ── public ─────────────────────────────────────────────────────────────

    async def fetch_one(self, name: str) -> RegistryRecord:
        """Fetch registry metadata for a single package.

        Args:
            name: Package name, matched case-insensitively against the cache.

        Returns:
            The package's registry record.

        Raises:
            InvalidInputError: If the name is not a non-empty string.
            RegistryError: The cached or freshly produced terminal failure
                (not found, rate limited, timeout or transport error).
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidInputError("Package name must be a non-empty string")

        name = name.strip()
        key = name.lower()
        entry = self._entries.get(key)

        if entry is None:
            task = asyncio.ensure_future(self._load(name, key))
            self._entries[key] = _CacheEntry(state=_EntryState.PENDING, task=task)
        elif entry.state is _EntryState.RESOLVED and entry.record is not None:
            logger.debug("Cache hit for %s", name)
            return entry.record
        elif entry.state is _EntryState.FAILED and entry.error is not None:
            logger.debug("Cached failure for %s", name)
            raise entry.error
        else:
            logger.debug("Joining in-flight request for %s", name)
            task = entry.task

        # Shielded so that a cancelled waiter does not cancel the shared lookup
        return await asyncio.shield(task)

    async def fetch_batch(self, names: Iterable[str]) -> BatchResult:
        """Fetch registry metadata for many packages.

        All lookups start together; the client-wide concurrency bound
        decides how many HTTP requests are actually outstanding. A failing
        package never aborts or delays the others.

        Args:
            names: Package names; duplicates are ignored.

        Returns:
            Records and failures keyed by the requested name, plus counts.
        """
        unique = list(dict.fromkeys(names))
        if not unique:
            return BatchResult()

        logger.info("Fetching registry data for %d packages", len(unique))
        outcomes = await asyncio.gather(*(self._fetch_isolated(name) for name in unique))

        records: dict[str, RegistryRecord] = {}
        errors: dict[str, FetchFailure] = {}
        for name, outcome in zip(unique, outcomes):
            if isinstance(outcome, FetchFailure):
                errors[name] = outcome
            else:
                records[name] = outcome

        logger.info("Registry fetch finished: %d succeeded, %d failed", len(records), len(errors))
        return BatchResult(
            records=records,
            errors=errors,
            requested=len(unique),
            succeeded=len(records),
            failed=len(errors),
        )

    def clear_cache(self) -> None:
        """Drop cached records and failures; in-flight lookups are kept."""
        pending = {key: entry for key, entry in self._entries.items() if entry.state is _EntryState.PENDING}
        self._entries.clear()
        self._entries.update(pending)

    def cache_stats(self) -> CacheStats:
        """Return the number of settled and in-flight cache entries."""
        pending = sum(1 for entry in self._entries.values() if entry.state is _EntryState.PENDING)
        return CacheStats(cache_size=len(self._entries) - pending, pending_count=pending)

    # ── internal ───────────────────────────────────────────────────────────

    async def _fetch_isolated(self, name: str) -> RegistryRecord | FetchFailure:
        try:
            return await self.fetch_one(name)
        except RegistryError as exc:
            return FetchFailure(kind=exc.kind, message=str(exc))
        except InvalidInputError as exc:
            return FetchFailure(kind=ErrorKind.TRANSPORT, message=str(exc))

    async def _load(self, name: str, key: str) -> RegistryRecord:
        """Run the retry chain and settle the cache entry with its outcome."""
        try:
            record = await self._fetch_with_retry(name)
        except RegistryError as exc:
            self._entries[key] = _CacheEntry(state=_EntryState.FAILED, error=exc)
            raise
        except BaseException:
            # Cancelled or unexpected: leave no stale pending entry behind
            self._entries.pop(key, None)
            raise
        self._entries[key] = _CacheEntry(state=_EntryState.RESOLVED, record=record)
        return record

    async def _fetch_with_retry(self, name: str) -> RegistryRecord:
        """Request a package, retrying with exponential backoff.

        The first attempt is immediate; after failed attempt ``n`` the client
        sleeps ``retry_base_delay * 2 ** (n - 1)`` seconds.
        """
        attempts = self.settings.retry_attempts
        attempt = 1
        while True:
            try:
                return await self._request_once(name)
            except RegistryError as exc:
                if attempt >= attempts:
                    logger.warning("Giving up on %s after %d attempt(s): %s", name, attempt, exc)
                    raise
                delay = self.settings.backoff_delay(attempt)
                logger.warning(
                    "Attempt %d/%d for %s failed (%s); retrying in %.2fs",
                    attempt,
                    attempts,
                    name,
                    exc,
                    delay,
                )
                await self._sleep(delay)
            attempt += 1

    async def _request_once(self, name: str) -> RegistryRecord:
        url = self._package_url(name)
        async with self._slots():
            logger.debug("GET %s", url)
            try:
                async with httpx.AsyncClient(
                    timeout=self.settings.timeout,
                    headers=self._get_headers(),
                    transport=self._transport,
                    follow_redirects=True,
                ) as client:
                    response = await client.get(url)
            except httpx.TimeoutException as exc:
                raise RegistryTimeoutError(name) from exc
            except httpx.HTTPError as exc:
                raise RegistryTransportError(name, str(exc) or type(exc).__name__) from exc
        return self._parse_response(name, response)

    def _parse_response(self, name: str, response: httpx.Response) -> RegistryRecord:
        if response.status_code == 404:
            raise PackageNotFoundError(name)
        if response.status_code == 429:
            raise RateLimitedError(name)
        if response.status_code != 200:
            raise RegistryTransportError(name, f"Unexpected response status: {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise RegistryTransportError(name, "Invalid JSON in registry response") from exc

        try:
            packument = PackumentSchema.model_validate(data)
        except ValidationError as exc:
            raise RegistryTransportError(name, "Invalid package data received") from exc
        return extract_record(name, packument)

    def _package_url(self, name: str) -> str:
        # Scoped names keep their "@" and escape the "/"
        return f"{self.settings.base_url.rstrip('/')}/{quote(name, safe='@')}"

    def _get_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": self.settings.user_agent,
        }

    def _slots(self) -> asyncio.Semaphore:
        """Return the concurrency bound for the running event loop."""
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._semaphore_loop is not loop:
            self._semaphore = asyncio.Semaphore(self.settings.max_concurrent)
            self._semaphore_loop = loop
        return self._semaphore


__all__ = [
    "RegistryClient",
    "SleepFunc",
    "extract_record",
]
