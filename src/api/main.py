"""
FastAPI backend: exchange mailbox, short share links and share previews.
Run with uvicorn: uvicorn api.main:app --reload
"""

import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load .env from repo root (when run from repo root or from Docker)
for path in (
    Path(__file__).resolve().parent.parent.parent / ".env",
    Path.cwd() / ".env",
):
    if path.exists():
        load_dotenv(path)
        break

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from neo4j import GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError
from pydantic import BaseModel

from api.settings import STORE_NEO4J, Settings
from factswap.application import (
    AliasService,
    ExchangeQueue,
    ExpiredAlias,
    Invalid,
    InvalidShareToken,
    RemoteServiceError,
    StaleAliasError,
)
from factswap.application.token_codec import (
    build_alias_url,
    decode,
    extract_alias_slug,
    extract_share_token,
)
from factswap.application.wire import payload_from_wire, payload_to_wire
from factswap.domain import SharePayload, requires_privacy_notice
from factswap.infrastructure import (
    InMemoryAliasStore,
    InMemoryExchangeStore,
    Neo4jAliasStore,
    Neo4jExchangeStore,
    ensure_share_constraints,
)

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)

_STORE_ERRORS = (DriverError, Neo4jError)


def _get_driver(settings: Settings):
    return GraphDatabase.driver(
        settings.neo4j_uri, auth=(settings.neo4j_user, settings.neo4j_password)
    )


def _get_settings(app: FastAPI) -> Settings:
    if getattr(app.state, "settings", None) is None:
        app.state.settings = Settings.from_env()
    return app.state.settings


def _get_cached_driver(app: FastAPI):
    if getattr(app.state, "driver", None) is None:
        app.state.driver = _get_driver(_get_settings(app))
    return app.state.driver


def get_exchange_queue(app: FastAPI) -> ExchangeQueue:
    if getattr(app.state, "exchange_queue", None) is None:
        settings = _get_settings(app)
        if settings.store == STORE_NEO4J:
            store = Neo4jExchangeStore(_get_cached_driver(app))
        else:
            store = InMemoryExchangeStore()
        app.state.exchange_queue = ExchangeQueue(store, batch_size=settings.exchange_batch_size)
    return app.state.exchange_queue


def get_alias_service(app: FastAPI) -> AliasService:
    if getattr(app.state, "alias_service", None) is None:
        settings = _get_settings(app)
        if settings.store == STORE_NEO4J:
            store = Neo4jAliasStore(_get_cached_driver(app))
        else:
            store = InMemoryAliasStore()
        app.state.alias_service = AliasService(store, ttl=settings.alias_ttl)
    return app.state.alias_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.driver = None
    settings = _get_settings(app)
    logger.info("FactSwap API: store=%s origin=%s", settings.store, settings.public_origin)
    try:
        if settings.store == STORE_NEO4J:
            ensure_share_constraints(_get_cached_driver(app))
        yield
    finally:
        if getattr(app.state, "driver", None) is not None:
            app.state.driver.close()


app = FastAPI(title="FactSwap API", lifespan=lifespan)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(content={"ok": False, "message": message}, status_code=status_code)


# --- REST: health ---


@app.get("/health")
def health():
    return {"status": "ok"}


# --- REST: exchange mailbox ---


class ExchangeBody(BaseModel):
    initiatorId: str | None = None
    targetId: str | None = None
    payload: Any = None


@app.post("/exchange")
def post_exchange(body: ExchangeBody, request: Request):
    initiator = (body.initiatorId or "").strip()
    target = (body.targetId or "").strip()
    if not initiator or not target or body.payload is None:
        return _error(400, "initiatorId, targetId and payload are required.")
    if initiator == target:
        return {"ok": True}
    try:
        payload = payload_from_wire(body.payload)
    except InvalidShareToken as e:
        logger.warning("Rejected exchange %s -> %s: %s", initiator, target, e.reason)
        return _error(400, "Exchange payload is invalid.")

    try:
        result = get_exchange_queue(request.app).enqueue(initiator, target, payload)
    except _STORE_ERRORS:
        logger.exception("Failed to store exchange %s -> %s", initiator, target)
        return _error(500, "Could not store the exchange.")
    if isinstance(result, Invalid):
        return _error(400, result.reason)
    return {"ok": True}


@app.get("/exchange")
def get_exchanges(request: Request, profileId: str | None = None):
    profile_id = (profileId or "").strip()
    if not profile_id:
        return _error(400, "profileId is required.")
    try:
        records = get_exchange_queue(request.app).drain(profile_id)
    except _STORE_ERRORS:
        logger.exception("Failed to drain exchanges for %s", profile_id)
        return _error(500, "Could not load exchanges.")
    if isinstance(records, Invalid):
        return _error(400, records.reason)
    return {
        "ok": True,
        "exchanges": [
            {
                "id": r.id,
                "initiatorId": r.initiator_profile_id,
                "createdAt": r.created_at.isoformat(),
                "payload": payload_to_wire(r.payload),
            }
            for r in records
        ],
    }


# --- REST: short share links ---


class ShareLinkBody(BaseModel):
    token: str | None = None


@app.post("/share-link")
def create_share_link(body: ShareLinkBody, request: Request):
    settings = _get_settings(request.app)
    try:
        record = get_alias_service(request.app).create_alias(body.token or "")
    except InvalidShareToken:
        return _error(400, "A share token is required to create a short link.")
    except RemoteServiceError as e:
        return _error(503, e.message)
    except _STORE_ERRORS:
        logger.exception("Failed to create short link")
        return _error(500, "Could not create a short link.")
    return {
        "ok": True,
        "slug": record.slug,
        "url": build_alias_url(record.slug, settings.public_origin),
        "expiresAt": record.expires_at.isoformat(),
    }


def _stale_alias_response(e: StaleAliasError) -> JSONResponse:
    return _error(410 if isinstance(e, ExpiredAlias) else 404, e.message)


@app.get("/share-link")
def resolve_share_link(request: Request, slug: str | None = None):
    if not (slug or "").strip():
        return _error(400, "slug is required.")
    try:
        record = get_alias_service(request.app).resolve(slug)
    except StaleAliasError as e:
        return _stale_alias_response(e)
    except _STORE_ERRORS:
        logger.exception("Failed to resolve short link %s", slug)
        return _error(500, "Could not resolve the short link.")
    return {"ok": True, "token": record.token, "expiresAt": record.expires_at.isoformat()}


# --- Share preview (receiving page) ---


def _preview(payload: SharePayload) -> dict:
    return {
        "ok": True,
        "payload": payload_to_wire(payload),
        "privacyNotice": requires_privacy_notice(payload.privacy),
    }


def _preview_token(token: str | None) -> dict | JSONResponse:
    if not token:
        return _error(400, "The share link is invalid.")
    try:
        return _preview(decode(token))
    except InvalidShareToken as e:
        logger.info("Invalid share token: %s", e.reason)
        return _error(400, e.message)


@app.get("/share")
def share_by_query(request: Request):
    return _preview_token(extract_share_token(str(request.url)))


@app.get("/share/{value:path}")
def share_by_path(value: str, request: Request):
    token = extract_share_token(value) or extract_share_token(str(request.url))
    if token:
        return _preview_token(token)
    slug = extract_alias_slug(value)
    if not slug:
        return _error(400, "The share link is invalid.")
    try:
        record = get_alias_service(request.app).resolve(slug)
    except StaleAliasError as e:
        return _stale_alias_response(e)
    except _STORE_ERRORS:
        logger.exception("Failed to resolve short link %s", slug)
        return _error(500, "Could not resolve the short link.")
    return _preview_token(extract_share_token(record.token))
