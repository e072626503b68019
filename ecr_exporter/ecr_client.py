"""Paginated access to the ECR management API."""

from __future__ import annotations

import logging
from typing import Any, Iterator

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, HTTPClientError
from botocore.exceptions import ConnectionError as BotoConnectionError

from .config import RegistrySettings
from .deadline import Deadline
from .models import ImageRecord, RepositoryRecord

LOGGER = logging.getLogger(__name__)

NOT_FOUND_CODES = {"RepositoryNotFoundException", "RegistryNotFoundException"}
THROTTLING_CODES = {
    "ThrottlingException",
    "Throttling",
    "TooManyRequestsException",
    "LimitExceededException",
    "RequestLimitExceeded",
}


class RegistryAPIError(RuntimeError):
    """Raised when a registry call fails; ``kind`` categorises the failure."""

    kind = "other"


class RepositoryNotFoundError(RegistryAPIError):
    kind = "not_found"


class RegistryThrottledError(RegistryAPIError):
    kind = "throttled"


class RegistryTransientError(RegistryAPIError):
    kind = "transient"


class RegistryTimeoutError(RegistryTransientError):
    """The scrape deadline elapsed before or during a remote call."""


class RegistryClient:
    """Adapter over a boto3 ECR client that hides pagination."""

    def __init__(self, client: Any | None, *, page_size: int | None = None) -> None:
        self._client = client
        self._page_size = page_size

    def list_repositories(self, deadline: Deadline) -> list[RepositoryRecord]:
        """Return every repository in the registry, in API order."""

        repositories: list[RepositoryRecord] = []
        for page in self.pages("describe_repositories", "repositories", deadline):
            repositories.extend(RepositoryRecord.from_api(item) for item in page)
        LOGGER.debug("Total repositories fetched: %s", len(repositories))
        return repositories

    def list_images(self, deadline: Deadline, repository_name: str) -> list[ImageRecord]:
        """Return every image of ``repository_name``, in API order."""

        images: list[ImageRecord] = []
        for page in self.pages("describe_images", "imageDetails", deadline, repositoryName=repository_name):
            images.extend(ImageRecord.from_api(item) for item in page)
        LOGGER.debug("Total images fetched for repository %s: %s", repository_name, len(images))
        return images

    def pages(self, operation: str, result_key: str, deadline: Deadline, **params: Any) -> Iterator[list[dict[str, Any]]]:
        """Yield one page of raw records per remote call until no ``nextToken`` remains."""

        next_token: str | None = None
        while True:
            request = dict(params)
            if next_token:
                request["nextToken"] = next_token
            if self._page_size:
                request["maxResults"] = self._page_size

            response = self._call(operation, deadline, request)
            records = response.get(result_key) or []
            LOGGER.debug("Got %s %s in this batch", len(records), result_key)
            yield records

            next_token = response.get("nextToken")
            if not next_token:
                return

    def probe(self, deadline: Deadline | None = None) -> None:
        """Make one minimal call to verify credentials and connectivity."""

        self._call("describe_repositories", deadline or Deadline.never(), {"maxResults": 1})

    def _call(self, operation: str, deadline: Deadline, request: dict[str, Any]) -> dict[str, Any]:
        if self._client is None:
            raise RegistryAPIError(f"{operation} failed: no registry client configured")
        if deadline.expired:
            raise RegistryTimeoutError(f"{operation} not attempted: scrape deadline exceeded")

        LOGGER.debug("Making %s API call", operation)
        try:
            response = getattr(self._client, operation)(**request)
        except ClientError as exc:
            raise _classify_client_error(operation, exc) from exc
        except (BotoConnectionError, HTTPClientError) as exc:
            if deadline.expired:
                raise RegistryTimeoutError(f"{operation} timed out: {exc}") from exc
            raise RegistryTransientError(f"{operation} failed: {exc}") from exc
        except BotoCoreError as exc:
            raise RegistryAPIError(f"{operation} failed: {exc}") from exc
        if deadline.expired:
            raise RegistryTimeoutError(f"{operation} completed after the scrape deadline")
        return response


def _classify_client_error(operation: str, exc: ClientError) -> RegistryAPIError:
    error = exc.response.get("Error", {})
    code = error.get("Code", "")
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    message = f"{operation} failed with {code or status}: {error.get('Message', exc)}"

    if code in NOT_FOUND_CODES:
        return RepositoryNotFoundError(message)
    if code in THROTTLING_CODES or status == 429:
        return RegistryThrottledError(message)
    if isinstance(status, int) and status >= 500:
        return RegistryTransientError(message)
    return RegistryAPIError(message)


def create_ecr_client(settings: RegistrySettings, scrape_timeout: float | None = None) -> Any:
    """Build a boto3 ECR client using the default credential chain.

    With ``scrape_timeout`` set, the socket timeouts and retry budget are
    shrunk so that a single call, retries included, cannot outlive a scrape.
    """

    connect_timeout = settings.connect_timeout
    read_timeout = settings.read_timeout
    max_attempts = settings.max_attempts
    if scrape_timeout is not None:
        connect_timeout = min(connect_timeout, scrape_timeout)
        read_timeout = min(read_timeout, scrape_timeout)
        max_attempts = max(1, min(max_attempts, int(scrape_timeout // read_timeout)))

    config = Config(
        region_name=settings.region,
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": max_attempts, "mode": "standard"},
    )
    return boto3.client("ecr", endpoint_url=settings.endpoint_url, config=config)


__all__ = [
    "RegistryAPIError",
    "RegistryClient",
    "RegistryThrottledError",
    "RegistryTimeoutError",
    "RegistryTransientError",
    "RepositoryNotFoundError",
    "create_ecr_client",
]
