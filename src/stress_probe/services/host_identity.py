"""Host identity lookup via the EC2 instance metadata service.

Instance id and availability zone are display-only. Lookups never raise:
any failure falls back to fixed placeholder values so the service behaves
the same off EC2 (local development, containers without metadata access).
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Dict, Optional

import requests

from stress_probe.constants import (
    FALLBACK_AVAILABILITY_ZONE,
    FALLBACK_INSTANCE_ID,
    METADATA_AZ_PATH,
    METADATA_DEFAULT_URL,
    METADATA_INSTANCE_ID_PATH,
    METADATA_RETRY_SECONDS,
    METADATA_TIMEOUT,
    METADATA_TOKEN_TTL_SECONDS,
)


@dataclass
class HostIdentity:
    """Where this process is running."""

    instance_id: str
    availability_zone: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "instance_id": self.instance_id,
            "availability_zone": self.availability_zone,
        }


class HostIdentityClient:
    """Client for the instance metadata service.

    Tries an IMDSv2 session token first and falls back to plain IMDSv1
    requests when the token endpoint refuses. Successful lookups are cached
    for the lifetime of the client. After a timeout or connection error the
    service is not contacted again until retry_after seconds have passed,
    so placeholders are served quickly off EC2 and a transient failure at
    boot does not stick.

    Attributes:
        url: Base URL of the metadata service
        timeout: Request timeout in seconds
        retry_after: Backoff in seconds after the service was unreachable
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: float = METADATA_TIMEOUT,
        retry_after: float = METADATA_RETRY_SECONDS,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize metadata client.

        Args:
            url: Metadata service URL. If not provided, uses METADATA_URL or the EC2 default.
            timeout: Request timeout in seconds.
            retry_after: Seconds to skip lookups after the service was unreachable.
            logger: Optional logger instance.
        """
        self.url = (url or os.environ.get("METADATA_URL") or METADATA_DEFAULT_URL).rstrip("/")
        self.timeout = timeout
        self.retry_after = retry_after
        self._logger = logger or logging.getLogger(self.__class__.__name__)
        self._cache: Dict[str, str] = {}
        self._token: Optional[str] = None
        self._unreachable_until = 0.0

    def _get_token(self) -> Optional[str]:
        """Request an IMDSv2 session token. Returns None if refused."""
        if self._token:
            return self._token

        response = requests.put(
            f"{self.url}/api/token",
            headers={"X-aws-ec2-metadata-token-ttl-seconds": str(METADATA_TOKEN_TTL_SECONDS)},
            timeout=self.timeout,
        )
        if response.status_code == 200:
            self._token = response.text.strip()
        else:
            self._logger.debug(
                "IMDSv2 token refused (status=%s), using IMDSv1", response.status_code
            )
        return self._token

    def get_metadata(self, path: str) -> Optional[str]:
        """Fetch a single metadata value.

        Args:
            path: Path relative to the base URL, e.g. "meta-data/instance-id"

        Returns:
            The value, or None if the lookup failed.
        """
        if path in self._cache:
            return self._cache[path]
        if time.monotonic() < self._unreachable_until:
            return None

        value = None
        try:
            headers = {}
            token = self._get_token()
            if token:
                headers["X-aws-ec2-metadata-token"] = token

            response = requests.get(
                f"{self.url}/{path}",
                headers=headers,
                timeout=self.timeout,
            )
            if response.status_code == 200 and response.text.strip():
                value = response.text.strip()
            else:
                self._logger.warning(
                    "Metadata lookup returned status=%s for %s", response.status_code, path
                )
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError):
            self._logger.info(
                "Metadata service unreachable at %s, using fallback host identity", self.url
            )
            self._unreachable_until = time.monotonic() + self.retry_after
            self._token = None
        except requests.exceptions.RequestException as e:
            self._logger.warning("Metadata lookup failed: %s", e)

        if value is not None:
            self._cache[path] = value
        return value

    def get_instance_id(self) -> str:
        return self.get_metadata(METADATA_INSTANCE_ID_PATH) or FALLBACK_INSTANCE_ID

    def get_availability_zone(self) -> str:
        return self.get_metadata(METADATA_AZ_PATH) or FALLBACK_AVAILABILITY_ZONE

    def get_identity(self) -> HostIdentity:
        return HostIdentity(
            instance_id=self.get_instance_id(),
            availability_zone=self.get_availability_zone(),
        )
