"""
Dependency wiring for the FastAPI app.

Every collaborator is built once from `Settings` and shared by all requests;
none of them hold per-request state.
"""

from __future__ import annotations

import logging
import secrets

from fastapi import Depends, Request

from postdesk.assets import AssetStoreClient, GitHubAssetStore, InMemoryAssetStore
from postdesk.config import get_settings
from postdesk.errors import ConfigurationError
from postdesk.orchestrator import PostOrchestrator
from postdesk.records import (
    AppsScriptRecordStore,
    InMemoryRecordStore,
    RecordStoreClient,
)
from postdesk.session import SessionGate
from postdesk.tokens import TokenCodec

logger = logging.getLogger(__name__)

_asset_store: AssetStoreClient | None = None
_record_store: RecordStoreClient | None = None
_token_codec: TokenCodec | None = None
_session_gate: SessionGate | None = None
_orchestrator: PostOrchestrator | None = None


def get_asset_store() -> AssetStoreClient:
    global _asset_store
    if _asset_store:
        return _asset_store

    settings = get_settings()
    configured = (
        settings.github_token and settings.github_username and settings.github_repo
    )
    if settings.use_in_memory_backends or not configured:
        _asset_store = InMemoryAssetStore()
    else:
        _asset_store = GitHubAssetStore(
            token=settings.github_token,
            owner=settings.github_username,
            repo=settings.github_repo,
            branch=settings.github_branch,
            api_url=settings.github_api_url,
            timeout=settings.request_timeout_seconds,
        )
    return _asset_store


def get_record_store() -> RecordStoreClient:
    global _record_store
    if _record_store:
        return _record_store

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.google_script_url:
        _record_store = InMemoryRecordStore()
    else:
        _record_store = AppsScriptRecordStore(
            script_url=settings.google_script_url,
            secret_key=settings.google_secret_key or "",
            timeout=settings.request_timeout_seconds,
        )
    return _record_store


def get_token_codec() -> TokenCodec:
    global _token_codec
    if _token_codec:
        return _token_codec

    settings = get_settings()
    secret = settings.session_secret
    if not secret:
        if not settings.use_in_memory_backends:
            raise ConfigurationError("SESSION_SECRET is not set")
        # Sessions do not survive a restart in development mode.
        logger.warning("SESSION_SECRET not set; using a random per-process secret")
        secret = secrets.token_hex(32)
    _token_codec = TokenCodec(secret)
    return _token_codec


def get_session_gate() -> SessionGate:
    global _session_gate
    if _session_gate:
        return _session_gate

    settings = get_settings()
    if not settings.admin_username or not settings.admin_password:
        raise ConfigurationError("ADMIN_USERNAME and ADMIN_PASSWORD must be set")
    _session_gate = SessionGate(
        codec=get_token_codec(),
        admin_username=settings.admin_username,
        admin_password=settings.admin_password,
        session_duration_seconds=settings.session_duration_seconds,
    )
    return _session_gate


def get_orchestrator() -> PostOrchestrator:
    global _orchestrator
    if _orchestrator:
        return _orchestrator
    _orchestrator = PostOrchestrator(get_asset_store(), get_record_store())
    return _orchestrator


def require_admin(
    request: Request, gate: SessionGate = Depends(get_session_gate)
) -> str:
    """Return the session user or raise `Unauthorized` before any store call."""
    return gate.authenticate(request.headers.get("cookie"))


def reset_dependencies() -> None:
    """Drop cached collaborators so the next request rebuilds them from settings."""
    global _asset_store, _record_store, _token_codec, _session_gate, _orchestrator
    _asset_store = None
    _record_store = None
    _token_codec = None
    _session_gate = None
    _orchestrator = None
