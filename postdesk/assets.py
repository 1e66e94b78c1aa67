"""
Asset store abstraction: GitHub repository contents and an in-memory double.

Paths are repository-relative (``videos/<slug>-<name>``). Every mutating
call returns an `Outcome`; remote failures never raise.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Protocol
from urllib.parse import quote

import requests

from postdesk.errors import (
    AssetWriteFailed,
    NotFound,
    Outcome,
    UpstreamFailure,
    ValidationError,
)

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:[^;,]*;base64,", re.IGNORECASE)


def normalize_base64(content: str) -> str:
    """
    Strip a ``data:...;base64,`` prefix and whitespace, and check the rest
    decodes.

    Raises:
        ValidationError: if the content is empty or not base64.
    """
    text = _DATA_URL_PREFIX.sub("", (content or "").strip())
    text = re.sub(r"\s+", "", text)
    if not text:
        raise ValidationError("File content is empty")
    try:
        base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("File content is not valid base64") from exc
    return text


def git_blob_sha(data: bytes) -> str:
    header = f"blob {len(data)}\0".encode("ascii")
    return hashlib.sha1(header + data).hexdigest()


@dataclass(frozen=True)
class AssetEntry:
    name: str
    path: str
    sha: str
    size: int = 0
    type: str = "file"
    download_url: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "AssetEntry":
        return cls(
            name=data.get("name", ""),
            path=data.get("path", ""),
            sha=data.get("sha", ""),
            size=int(data.get("size") or 0),
            type=data.get("type", "file"),
            download_url=data.get("download_url"),
        )

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "path": self.path,
            "sha": self.sha,
            "size": self.size,
            "type": self.type,
            "download_url": self.download_url,
        }


class AssetStoreClient(Protocol):
    """Operations the orchestrator needs from the asset store."""

    def public_url(self, path: str) -> str:
        ...

    def stat(self, path: str) -> Outcome[Optional[AssetEntry]]:
        ...

    def put(self, path: str, content_b64: str) -> Outcome[str]:
        ...

    def delete(self, path: str) -> Outcome[None]:
        ...

    def list(self, folder: str = "") -> Outcome[list[AssetEntry]]:
        ...


@dataclass
class InMemoryAssetStore:
    """Test double for asset storage."""

    base_url: str = "https://example.test/assets"
    objects: dict = field(default_factory=dict)

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    def stat(self, path: str) -> Outcome[Optional[AssetEntry]]:
        data = self.objects.get(path)
        if data is None:
            return Outcome.success(None)
        return Outcome.success(
            AssetEntry(
                name=path.rsplit("/", 1)[-1],
                path=path,
                sha=git_blob_sha(data),
                size=len(data),
                download_url=self.public_url(path),
            )
        )

    def put(self, path: str, content_b64: str) -> Outcome[str]:
        self.objects[path] = base64.b64decode(content_b64)
        return Outcome.success(self.public_url(path))

    def delete(self, path: str) -> Outcome[None]:
        self.objects.pop(path, None)
        return Outcome.success()

    def list(self, folder: str = "") -> Outcome[list[AssetEntry]]:
        prefix = f"{folder.strip('/')}/" if folder.strip("/") else ""
        entries = []
        for path in sorted(self.objects):
            if path.startswith(prefix) and "/" not in path[len(prefix):]:
                entries.append(self.stat(path).value)
        return Outcome.success(entries)

    def reset(self) -> None:
        self.objects.clear()


@dataclass
class GitHubAssetStore:
    """
    Asset store backed by the GitHub contents API of one repository.
    """

    token: str
    owner: str
    repo: str
    branch: str = "main"
    api_url: str = "https://api.github.com"
    timeout: float = 30

    def __post_init__(self):
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/vnd.github+json",
            }
        )

    def _contents_url(self, path: str) -> str:
        return (
            f"{self.api_url.rstrip('/')}/repos/{self.owner}/{self.repo}"
            f"/contents/{quote(path.strip('/'))}"
        )

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        return self._session.request(
            method, self._contents_url(path), timeout=self.timeout, **kwargs
        )

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        fallback = response.reason or f"HTTP {response.status_code}"
        try:
            data = response.json()
        except ValueError:
            return fallback
        if isinstance(data, dict) and data.get("message"):
            return data["message"]
        return fallback

    def public_url(self, path: str) -> str:
        return (
            f"https://raw.githubusercontent.com/{self.owner}/{self.repo}"
            f"/{self.branch}/{path.strip('/')}"
        )

    def stat(self, path: str) -> Outcome[Optional[AssetEntry]]:
        try:
            response = self._request("GET", path, params={"ref": self.branch})
        except requests.RequestException as exc:
            return Outcome.failure(UpstreamFailure(f"Could not read {path}: {exc}"))
        if response.status_code == 404:
            return Outcome.success(None)
        if not response.ok:
            return Outcome.failure(
                UpstreamFailure(
                    f"Could not read {path}: {self._error_message(response)}"
                )
            )
        try:
            data = response.json()
        except ValueError:
            return Outcome.failure(
                UpstreamFailure(f"Could not read {path}: response is not JSON")
            )
        if isinstance(data, list):
            # A directory lives at this path, not a file.
            return Outcome.success(None)
        if not isinstance(data, dict):
            return Outcome.failure(
                UpstreamFailure(f"Could not read {path}: unexpected response")
            )
        return Outcome.success(AssetEntry.from_api(data))

    def put(self, path: str, content_b64: str) -> Outcome[str]:
        existing = self.stat(path)
        if not existing.ok:
            return Outcome.failure(AssetWriteFailed(existing.error.message))

        body = {
            "message": f"Update {path}" if existing.value else f"Upload {path}",
            "content": content_b64,
            "branch": self.branch,
        }
        if existing.value:
            body["sha"] = existing.value.sha

        try:
            response = self._request("PUT", path, json=body)
        except requests.RequestException as exc:
            logger.error("Upload of %s failed: %s", path, exc)
            return Outcome.failure(AssetWriteFailed(f"Upload of {path} failed"))
        if not response.ok:
            message = self._error_message(response)
            logger.error(
                "Upload of %s rejected (%s): %s", path, response.status_code, message
            )
            return Outcome.failure(
                AssetWriteFailed(f"Upload of {path} failed: {message}")
            )

        logger.info("Uploaded asset %s", path)
        return Outcome.success(self.public_url(path))

    def delete(self, path: str) -> Outcome[None]:
        existing = self.stat(path)
        if existing.ok and existing.value is None:
            logger.info("Asset %s already absent", path)
            return Outcome.success()
        if not existing.ok:
            logger.warning("Skipping delete of %s: %s", path, existing.error.message)
            return Outcome.failure(existing.error)

        body = {
            "message": f"Delete {path}",
            "sha": existing.value.sha,
            "branch": self.branch,
        }
        try:
            response = self._request("DELETE", path, json=body)
        except requests.RequestException as exc:
            logger.warning("Delete of %s failed: %s", path, exc)
            return Outcome.failure(UpstreamFailure(f"Delete of {path} failed"))
        if not response.ok:
            message = self._error_message(response)
            logger.warning("Delete of %s rejected: %s", path, message)
            return Outcome.failure(
                UpstreamFailure(f"Delete of {path} failed: {message}")
            )

        logger.info("Deleted asset %s", path)
        return Outcome.success()

    def list(self, folder: str = "") -> Outcome[list[AssetEntry]]:
        try:
            response = self._request("GET", folder, params={"ref": self.branch})
        except requests.RequestException as exc:
            return Outcome.failure(UpstreamFailure(f"Could not list {folder!r}: {exc}"))
        if response.status_code == 404:
            return Outcome.failure(NotFound(f"Folder {folder!r} not found"))
        if not response.ok:
            return Outcome.failure(UpstreamFailure(self._error_message(response)))
        try:
            data = response.json()
        except ValueError:
            return Outcome.failure(
                UpstreamFailure(f"Could not list {folder!r}: response is not JSON")
            )
        if not isinstance(data, list):
            data = [data]
        return Outcome.success(
            [AssetEntry.from_api(item) for item in data if isinstance(item, dict)]
        )
