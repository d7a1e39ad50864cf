"""Probe and fetch survey resources from a URL or a local directory."""

import logging
import pathlib

import requests

from .constants import FETCH_TIMEOUT, HTTP_USER_AGENT, PROBE_TIMEOUT

logger = logging.getLogger(__name__)


class ResourceError(RuntimeError):
    """A resource could not be fetched."""


class ResourceStore:
    """Content addressed by fixed key relative to a base location.

    *base* is either an ``http(s)://`` URL or a filesystem directory.
    Probes never download the payload: HTTP uses ``HEAD``, local paths
    only stat the file.
    """

    def __init__(self, base: str, probe_timeout: float = PROBE_TIMEOUT,
                 fetch_timeout: float = FETCH_TIMEOUT):
        self.base = str(base)
        self.is_remote = self.base.startswith(("http://", "https://"))
        self.probe_timeout = probe_timeout
        self.fetch_timeout = fetch_timeout
        self._session = requests.Session() if self.is_remote else None
        if self._session is not None:
            self._session.headers["User-Agent"] = HTTP_USER_AGENT

    def location(self, key: str) -> str:
        if self.is_remote:
            return self.base.rstrip("/") + "/" + key.lstrip("/")
        return str(pathlib.Path(self.base) / key)

    def exists(self, key: str) -> bool:
        """Lightweight existence check.

        Returns False for a definite "not there" (HTTP 404/410, missing
        file).  Transport errors and other HTTP failures raise, so the
        caller decides how to treat an indeterminate probe.
        """
        if not self.is_remote:
            return pathlib.Path(self.location(key)).is_file()

        url = self.location(key)
        response = self._session.head(url, timeout=self.probe_timeout,
                                      allow_redirects=True)
        if response.status_code in (404, 410):
            logger.debug(f"Probe {key}: {response.status_code}")
            return False
        response.raise_for_status()
        return True

    def fetch(self, key: str) -> bytes:
        """Full payload of *key*."""
        location = self.location(key)
        if not self.is_remote:
            try:
                return pathlib.Path(location).read_bytes()
            except OSError as e:
                raise ResourceError(f"Cannot read {location}: {e}") from e

        try:
            response = self._session.get(location, timeout=self.fetch_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ResourceError(f"Cannot fetch {location}: {e}") from e
        size_kb = len(response.content) / 1024
        logger.info(f"Fetched {key} ({size_kb:.0f} KB)")
        return response.content

    def close(self):
        if self._session is not None:
            self._session.close()

    def __repr__(self):
        return f"ResourceStore({self.base!r})"
