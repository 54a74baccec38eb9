"""Load the published activities snapshot into an :class:`ActivityStore`."""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List

import httpx
from pydantic import ValidationError

from wisecompanion.errors import DataFormatError, LoadError, UpstreamFetchError
from wisecompanion.normalization.schema import CanonicalActivity
from wisecompanion.observability import get_observability
from wisecompanion.settings import Settings, get_settings
from wisecompanion.store.activity_store import ActivityStore

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff: attempt ``n`` waits ``base * multiplier ** (n - 1)`` before retrying."""

    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must not be negative")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be at least 1")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        loader = settings.loader
        return cls(
            max_attempts=loader.max_attempts,
            base_delay_seconds=loader.base_delay_seconds,
            backoff_multiplier=loader.backoff_multiplier,
        )

    def delay_for(self, attempt: int) -> float:
        return self.base_delay_seconds * self.backoff_multiplier ** (attempt - 1)


def parse_artifact(text: str | bytes) -> List[CanonicalActivity]:
    """Parse snapshot JSON into activities.

    Raises:
        DataFormatError: The text is not JSON, the top level is not an array,
            or an element does not have the activity shape.
    """

    try:
        payload: Any = json.loads(text)
    except ValueError as exc:
        raise DataFormatError(f"Activities snapshot is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise DataFormatError(f"Activities snapshot must be a JSON array, got {type(payload).__name__}")
    activities: List[CanonicalActivity] = []
    for index, entry in enumerate(payload):
        try:
            activities.append(CanonicalActivity.model_validate(entry))
        except ValidationError as exc:
            raise DataFormatError(f"Activity #{index} has an invalid shape: {exc}") from exc
    return activities


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


class ArtifactLoader:
    """Fetch the snapshot from a URL or a local path, retrying transient failures.

    Args:
        source: HTTP(S) URL or filesystem path; defaults to the configured source.
        policy: Retry policy; defaults to the configured one.
        client: Optional ``httpx.Client`` used for URL sources.
        settings: Settings override.
        sleep: Delay function used between attempts.
    """

    def __init__(
        self,
        source: str | Path | None = None,
        *,
        policy: RetryPolicy | None = None,
        client: httpx.Client | None = None,
        settings: Settings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.source = str(source) if source is not None else self.settings.artifact_source
        self.policy = policy or RetryPolicy.from_settings(self.settings)
        self._client = client
        self._sleep = sleep
        self.observability = get_observability(component="loader", settings=self.settings)

    def fetch(self) -> str:
        """Read the raw snapshot once.

        Raises:
            UpstreamFetchError: Network failure, non-2xx status, or unreadable file.
        """

        if _is_url(self.source):
            return self._fetch_url()
        path = Path(self.source.removeprefix("file://"))
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise UpstreamFetchError(f"Cannot read activities snapshot {path}: {exc}") from exc

    def _fetch_url(self) -> str:
        try:
            if self._client is not None:
                response = self._client.get(self.source)
            else:
                with httpx.Client(timeout=self.settings.loader.timeout_seconds) as client:
                    response = client.get(self.source)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamFetchError(
                f"HTTP error (status {exc.response.status_code}) fetching {self.source}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"Request for {self.source} failed: {exc}") from exc
        return response.text

    def _wait(self, delay: float, cancel_event: threading.Event | None) -> None:
        if cancel_event is None:
            self._sleep(delay)
        elif cancel_event.wait(delay):
            raise LoadError(f"Loading {self.source} was cancelled")

    def load(self, store: ActivityStore, *, cancel_event: threading.Event | None = None) -> int:
        """Load the snapshot into ``store`` and return the activity count.

        Transient fetch failures are retried per the policy. Malformed data is
        not retried. On any failure ``store`` keeps its previous snapshot.

        Raises:
            DataFormatError: The snapshot was fetched but is malformed.
            LoadError: Every attempt failed, or ``cancel_event`` was set.
        """

        last_error: UpstreamFetchError | None = None
        for attempt in range(1, self.policy.max_attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise LoadError(f"Loading {self.source} was cancelled")
            try:
                text = self.fetch()
            except UpstreamFetchError as exc:
                last_error = exc
                if attempt >= self.policy.max_attempts:
                    break
                delay = self.policy.delay_for(attempt)
                LOGGER.warning(
                    "Attempt %s/%s to load %s failed: %s; retrying in %.2fs",
                    attempt,
                    self.policy.max_attempts,
                    self.source,
                    exc,
                    delay,
                )
                self._wait(delay, cancel_event)
                continue

            activities = parse_artifact(text)
            store.replace(activities)
            self.observability.emit_event(
                "load.completed",
                source=self.source,
                activities=len(activities),
                attempts=attempt,
            )
            return len(activities)

        self.observability.emit_event(
            "load.failed",
            source=self.source,
            attempts=self.policy.max_attempts,
            error=str(last_error),
        )
        raise LoadError(
            f"Could not load activities from {self.source} after {self.policy.max_attempts} attempt(s)"
        ) from last_error


__all__ = ["ArtifactLoader", "RetryPolicy", "parse_artifact"]
