"""
Create, update and delete workflows for posts.

A post is one row in the record store plus a video and a thumbnail in the
asset store. The two stores share no transaction, so each workflow is a
fixed sequence of calls:

* asset writes always happen before the record write that references them;
* a failed asset write aborts the workflow before any record call;
* superseded or deleted assets are removed best-effort and failures are only
  logged;
* on delete the record is removed even when asset cleanup fails, since the
  record decides whether a post exists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Callable, Optional

from postdesk.assets import AssetStoreClient, normalize_base64
from postdesk.errors import ValidationError
from postdesk.records import PostRecord, RecordStoreClient, check_row_index

logger = logging.getLogger(__name__)

VIDEO_FOLDER = "videos"
THUMBNAIL_FOLDER = "thumbnails"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def asset_path(folder: str, post_url: str, original_name: str) -> str:
    """
    Build ``<folder>/<postUrl>-<file name>``.

    The slug prefix keeps equally named uploads of different posts apart and
    keeps every path traceable to its post.
    """
    slug = (post_url or "").strip().strip("/").replace("/", "-")
    name = PurePosixPath((original_name or "").strip().replace("\\", "/")).name
    if not slug:
        raise ValidationError("postUrl is required to name assets")
    if not name or name in (".", ".."):
        raise ValidationError("Original file name is required")
    return f"{folder}/{slug}-{name}"


@dataclass
class Upload:
    content_b64: str
    original_name: str


@dataclass
class NewPost:
    title: str
    post_url: str
    video: Optional[Upload]
    thumbnail: Optional[Upload]
    url: str = ""
    labels: str = ""
    author: str = ""


@dataclass
class PostChange:
    row_index: int
    title: str
    post_url: str
    video_link: str = ""
    feature_image: str = ""
    url: str = ""
    labels: str = ""
    author: str = ""
    new_video: Optional[Upload] = None
    new_thumbnail: Optional[Upload] = None
    old_video_path: Optional[str] = None
    old_thumbnail_path: Optional[str] = None
    published: Optional[str] = None
    views: Optional[int] = None


@dataclass
class _PlannedUpload:
    path: str
    content_b64: str


def _require_text(**fields: Optional[str]) -> None:
    missing = [name for name, value in fields.items() if not (value or "").strip()]
    if missing:
        raise ValidationError(f"Missing fields: {', '.join(missing)}")


def _require_row(row_index: object) -> None:
    error = check_row_index(row_index)
    if error:
        raise error


class PostOrchestrator:
    def __init__(
        self,
        assets: AssetStoreClient,
        records: RecordStoreClient,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._assets = assets
        self._records = records
        self._clock = clock

    def _plan(self, folder: str, post_url: str, upload: Upload) -> _PlannedUpload:
        return _PlannedUpload(
            path=asset_path(folder, post_url, upload.original_name),
            content_b64=normalize_base64(upload.content_b64),
        )

    def _write(self, planned: _PlannedUpload) -> str:
        # Raises AssetWriteFailed; nothing downstream runs after a failed write.
        return self._assets.put(planned.path, planned.content_b64).unwrap()

    def _retire(self, path: Optional[str]) -> None:
        if not path or not path.strip("/"):
            return
        try:
            outcome = self._assets.delete(path.strip("/"))
        except Exception:
            # Cleanup never blocks the record write that follows.
            logger.exception("Leaving orphaned asset %s", path)
            return
        if not outcome.ok:
            logger.warning("Leaving orphaned asset %s: %s", path, outcome.error.message)

    def list_posts(self) -> list[PostRecord]:
        return self._records.list().unwrap()

    def create_post(self, post: NewPost) -> PostRecord:
        _require_text(title=post.title, postUrl=post.post_url)
        if post.video is None or post.thumbnail is None:
            raise ValidationError("Video and thumbnail are required")
        video = self._plan(VIDEO_FOLDER, post.post_url, post.video)
        thumbnail = self._plan(THUMBNAIL_FOLDER, post.post_url, post.thumbnail)

        # A video written before a failed thumbnail write stays orphaned; no
        # record references it.
        video_url = self._write(video)
        thumbnail_url = self._write(thumbnail)

        record = PostRecord(
            title=post.title,
            post_url=post.post_url,
            url=post.url,
            labels=post.labels,
            author=post.author,
            video_link=video_url,
            feature_image=thumbnail_url,
            published=format_timestamp(self._clock()),
            views=0,
        )
        self._records.create(record).unwrap()
        logger.info("Created post %s", post.post_url)
        return record

    def update_post(self, change: PostChange) -> PostRecord:
        _require_row(change.row_index)
        _require_text(title=change.title, postUrl=change.post_url)
        video = (
            self._plan(VIDEO_FOLDER, change.post_url, change.new_video)
            if change.new_video
            else None
        )
        thumbnail = (
            self._plan(THUMBNAIL_FOLDER, change.post_url, change.new_thumbnail)
            if change.new_thumbnail
            else None
        )

        video_url = change.video_link
        thumbnail_url = change.feature_image
        superseded: list[Optional[str]] = []

        # Both uploads finish before any old asset is removed, so a failed
        # upload leaves the post's current media untouched.
        if video:
            video_url = self._write(video)
            superseded.append(self._superseded(change.old_video_path, video.path))
        if thumbnail:
            thumbnail_url = self._write(thumbnail)
            superseded.append(
                self._superseded(change.old_thumbnail_path, thumbnail.path)
            )

        for path in superseded:
            self._retire(path)

        record = PostRecord(
            title=change.title,
            post_url=change.post_url,
            url=change.url,
            labels=change.labels,
            author=change.author,
            video_link=video_url,
            feature_image=thumbnail_url,
            published=change.published,
            views=change.views,
            row_index=change.row_index,
        )
        self._records.update(change.row_index, record).unwrap()
        logger.info("Updated post %s (row %s)", change.post_url, change.row_index)
        return record

    @staticmethod
    def _superseded(old_path: Optional[str], new_path: str) -> Optional[str]:
        # Re-uploading under the same path overwrote the old file in place.
        if not old_path or old_path.strip("/") == new_path:
            return None
        return old_path

    def delete_post(
        self,
        row_index: int,
        video_path: Optional[str] = None,
        thumbnail_path: Optional[str] = None,
    ) -> None:
        _require_row(row_index)
        self._retire(video_path)
        self._retire(thumbnail_path)
        self._records.delete(row_index).unwrap()
        logger.info("Deleted post at row %s", row_index)
