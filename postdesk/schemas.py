"""
Pydantic schemas for the admin API.

Field names follow the camelCase keys the admin front end already sends.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from postdesk.records import PostRecord


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class ActionResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class SessionResponse(BaseModel):
    success: bool = True
    user: str


class PostOut(BaseModel):
    title: str
    postUrl: str
    url: str = ""
    labels: str = ""
    author: str = ""
    videoLink: str = ""
    featureImage: str = ""
    published: Optional[str] = None
    views: Optional[int] = None
    rowIndex: Optional[int] = None

    @classmethod
    def from_record(cls, record: PostRecord) -> "PostOut":
        return cls(
            title=record.title,
            postUrl=record.post_url,
            url=record.url,
            labels=record.labels,
            author=record.author,
            videoLink=record.video_link,
            featureImage=record.feature_image,
            published=record.published,
            views=record.views,
            rowIndex=record.row_index,
        )


class PostListResponse(BaseModel):
    success: bool = True
    posts: list[PostOut]


class CreatePostRequest(BaseModel):
    title: str = Field(..., min_length=1)
    postUrl: str = Field(..., min_length=1)
    url: str = ""
    labels: str = ""
    author: str = ""
    videoBase64: str = Field(..., min_length=1)
    thumbnailBase64: str = Field(..., min_length=1)
    originalVideoName: str = Field(..., min_length=1)
    originalThumbName: str = Field(..., min_length=1)


class UpdatePostRequest(BaseModel):
    rowIndex: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    postUrl: str = Field(..., min_length=1)
    url: str = ""
    labels: str = ""
    author: str = ""
    videoLink: str = ""
    featureImage: str = ""
    newVideoBase64: Optional[str] = None
    newThumbnailBase64: Optional[str] = None
    originalVideoName: Optional[str] = None
    originalThumbName: Optional[str] = None
    oldVideoPath: Optional[str] = None
    oldThumbPath: Optional[str] = None
    published: Optional[str] = None
    views: Optional[int] = Field(default=None, ge=0)


class DeletePostRequest(BaseModel):
    rowIndex: int = Field(..., ge=1)
    vPath: Optional[str] = None
    tPath: Optional[str] = None
