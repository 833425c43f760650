"""Content stores holding radar documents."""
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from hashlib import sha1
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

import requests

from .errors import ConcurrentModification, StoreUnavailable

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
REQUEST_TIMEOUT = 30


@dataclass(frozen=True)
class StoredContent:
    data: bytes
    revision: str | None
    is_directory: bool = False

    @property
    def text(self) -> str:
        return self.data.decode("utf-8")


class ContentStore(Protocol):
    def get_default_branch(self) -> str: ...

    def get_content(self, path: str, ref: str) -> StoredContent | None: ...

    def create_or_update(
        self,
        path: str,
        content: bytes,
        message: str,
        branch: str,
        revision: str | None = None,
    ) -> str: ...


def blob_sha(data: bytes) -> str:
    """Git blob id for ``data``, matching the sha reported by the contents API."""
    header = f"blob {len(data)}\0".encode("ascii")
    return sha1(header + data).hexdigest()


class GitHubContentStore:
    """Repository contents API client."""

    def __init__(
        self,
        repo: str,
        token: str | None = None,
        session: requests.Session | None = None,
        api_url: str = GITHUB_API_URL,
    ) -> None:
        self.repo = repo
        self.base_url = f"{api_url.rstrip('/')}/repos/{repo}"
        self.session = session or requests.Session()
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "tech-radar-sync",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.session.headers.update(headers)

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        logger.debug("%s %s params=%s", method, url, kwargs.get("params"))
        try:
            return self.session.request(method, url, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as exc:
            raise StoreUnavailable(f"GitHub request failed: {exc}") from exc

    def _contents_url(self, path: str) -> str:
        return f"{self.base_url}/contents/{quote(path.strip('/'))}"

    def get_default_branch(self) -> str:
        response = self._request("GET", self.base_url)
        if response.status_code >= 400:
            raise StoreUnavailable(f"GitHub API error {response.status_code}: {response.text}")
        return str(response.json()["default_branch"])

    def get_content(self, path: str, ref: str) -> StoredContent | None:
        response = self._request("GET", self._contents_url(path), params={"ref": ref})
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise StoreUnavailable(f"GitHub API error {response.status_code}: {response.text}")
        payload = response.json()
        if isinstance(payload, list):
            return StoredContent(b"", None, is_directory=True)
        if payload.get("type") == "dir":
            return StoredContent(b"", payload.get("sha"), is_directory=True)
        if payload.get("encoding") != "base64":
            raise StoreUnavailable(f"{path} is too large for the contents API")
        data = base64.b64decode(payload.get("content", ""))
        return StoredContent(data, payload.get("sha"))

    def create_or_update(
        self,
        path: str,
        content: bytes,
        message: str,
        branch: str,
        revision: str | None = None,
    ) -> str:
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": branch,
        }
        if revision:
            body["sha"] = revision
        response = self._request("PUT", self._contents_url(path), json=body)
        if response.status_code == 409 or (
            response.status_code == 422 and "sha" in response.text.lower()
        ):
            raise ConcurrentModification(path, response.text)
        if response.status_code >= 400:
            raise StoreUnavailable(f"GitHub API error {response.status_code}: {response.text}")
        return str(response.json()["content"]["sha"])


class LocalContentStore:
    """Directory-backed store using git blob ids as revision tokens."""

    def __init__(self, root: Path, branch: str = "main") -> None:
        self.root = root
        self.branch = branch

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.strip("/")).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise StoreUnavailable(f"{path} escapes the store root")
        return target

    def get_default_branch(self) -> str:
        return self.branch

    def get_content(self, path: str, ref: str) -> StoredContent | None:
        target = self._resolve(path)
        if target.is_dir():
            return StoredContent(b"", None, is_directory=True)
        if not target.exists():
            return None
        data = target.read_bytes()
        return StoredContent(data, blob_sha(data))

    def create_or_update(
        self,
        path: str,
        content: bytes,
        message: str,
        branch: str,
        revision: str | None = None,
    ) -> str:
        target = self._resolve(path)
        current = blob_sha(target.read_bytes()) if target.is_file() else None
        if current != revision:
            raise ConcurrentModification(
                path, f"expected revision {revision or 'none'}, found {current or 'none'}"
            )
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.debug("Wrote %s (%s)", target, message)
        return blob_sha(content)
