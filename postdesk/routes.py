"""
HTTP routes for the admin API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response

from postdesk.dependencies import get_orchestrator, get_session_gate, require_admin
from postdesk.orchestrator import NewPost, PostChange, PostOrchestrator, Upload
from postdesk.schemas import (
    ActionResponse,
    CreatePostRequest,
    DeletePostRequest,
    HealthResponse,
    LoginRequest,
    PostListResponse,
    PostOut,
    SessionResponse,
    UpdatePostRequest,
)
from postdesk.session import SessionGate

logger = logging.getLogger(__name__)

router = APIRouter()

# Every admin route authenticates before its body is handled.
admin_router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


def _optional_upload(content: str | None, name: str | None) -> Upload | None:
    if not content:
        return None
    return Upload(content_b64=content, original_name=name or "")


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse()


@router.post("/login", response_model=ActionResponse)
def login(
    payload: LoginRequest,
    response: Response,
    gate: SessionGate = Depends(get_session_gate),
):
    cookie = gate.login(payload.username, payload.password)
    response.headers["Set-Cookie"] = cookie.header_value()
    return ActionResponse(success=True)


@router.post("/logout", response_model=ActionResponse)
def logout(response: Response, gate: SessionGate = Depends(get_session_gate)):
    response.headers["Set-Cookie"] = gate.logout().header_value()
    return ActionResponse(success=True)


@router.get("/session", response_model=SessionResponse)
def current_session(user: str = Depends(require_admin)):
    return SessionResponse(user=user)


@admin_router.get("/posts", response_model=PostListResponse)
def list_posts(orchestrator: PostOrchestrator = Depends(get_orchestrator)):
    records = orchestrator.list_posts()
    return PostListResponse(posts=[PostOut.from_record(r) for r in records])


@admin_router.post("/posts", response_model=ActionResponse)
def create_post(
    payload: CreatePostRequest,
    orchestrator: PostOrchestrator = Depends(get_orchestrator),
):
    orchestrator.create_post(
        NewPost(
            title=payload.title,
            post_url=payload.postUrl,
            url=payload.url,
            labels=payload.labels,
            author=payload.author,
            video=Upload(payload.videoBase64, payload.originalVideoName),
            thumbnail=Upload(payload.thumbnailBase64, payload.originalThumbName),
        )
    )
    return ActionResponse(success=True)


@admin_router.put("/posts", response_model=ActionResponse)
def update_post(
    payload: UpdatePostRequest,
    orchestrator: PostOrchestrator = Depends(get_orchestrator),
):
    orchestrator.update_post(
        PostChange(
            row_index=payload.rowIndex,
            title=payload.title,
            post_url=payload.postUrl,
            url=payload.url,
            labels=payload.labels,
            author=payload.author,
            video_link=payload.videoLink,
            feature_image=payload.featureImage,
            new_video=_optional_upload(
                payload.newVideoBase64, payload.originalVideoName
            ),
            new_thumbnail=_optional_upload(
                payload.newThumbnailBase64, payload.originalThumbName
            ),
            old_video_path=payload.oldVideoPath,
            old_thumbnail_path=payload.oldThumbPath,
            published=payload.published,
            views=payload.views,
        )
    )
    return ActionResponse(success=True)


@admin_router.delete("/posts", response_model=ActionResponse)
def delete_post(
    payload: DeletePostRequest,
    orchestrator: PostOrchestrator = Depends(get_orchestrator),
):
    orchestrator.delete_post(
        payload.rowIndex,
        video_path=payload.vPath,
        thumbnail_path=payload.tPath,
    )
    return ActionResponse(success=True)


router.include_router(admin_router)
