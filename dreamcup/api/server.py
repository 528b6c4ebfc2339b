"""
FastAPI control surface for cup builder sessions.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from fastapi import FastAPI, HTTPException, Path as PathParam, Response
from fastapi.middleware.cors import CORSMiddleware

from .. import BuilderConfig
from ..catalog import IngredientCatalog, IngredientNotFound, load_catalog
from ..ingredients import IngredientDescriptor, InvalidIngredientError
from ..layers import LayerEvent
from ..session import BuilderSession, EmptyDraft, SelectionNotFound, SessionManager, SessionNotFound
from ..themes import THEMES, UnknownTheme
from . import schemas

LOG = logging.getLogger(__name__)


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (SessionNotFound, IngredientNotFound, SelectionNotFound)):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _layer_response(session: BuilderSession, event: LayerEvent) -> dict:
    payload = event.to_dict()
    payload["cues"] = [cue.to_dict() for cue in session.plan(event)]
    payload.update(session.store.to_dict())
    return payload


def create_app(
    *,
    manager: Optional[SessionManager] = None,
    catalog: Optional[IngredientCatalog] = None,
    config: Optional[BuilderConfig] = None,
    lifespan: Optional[Callable[..., object]] = None,
) -> FastAPI:
    builder_config = config or BuilderConfig()
    sessions = (
        manager
        if manager is not None
        else SessionManager(capacity=builder_config.capacity, idle_timeout=builder_config.session_timeout)
    )
    ingredients = catalog if catalog is not None else load_catalog(builder_config.catalog_path)

    app = FastAPI(title="Dreamcup Builder API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_session(session_id: str) -> BuilderSession:
        try:
            return sessions.get(session_id)
        except SessionNotFound as exc:
            raise _http_error(exc) from exc

    def available_ingredient(ingredient_id: object) -> IngredientDescriptor:
        ingredient = ingredients.get(ingredient_id)
        if not ingredient.is_available:
            raise InvalidIngredientError(f"Ingredient '{ingredient.id}' is not available")
        return ingredient

    def resolve_ingredient(payload: schemas.LayerCommandRequest) -> Any:
        if payload.ingredient is not None:
            return payload.ingredient.to_payload()
        if payload.ingredient_id is None:
            raise InvalidIngredientError("ingredient or ingredientId is required")
        return available_ingredient(payload.ingredient_id)

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"status": "ok", "profile": builder_config.profile, "sessions": len(sessions)}

    @app.get("/themes", response_model=schemas.ThemeCollection)
    async def list_themes() -> schemas.ThemeCollection:
        return schemas.ThemeCollection(
            themes=[schemas.CupThemeModel(**theme.to_dict()) for theme in THEMES]
        )

    @app.get("/ingredients")
    async def list_ingredients(include_unavailable: bool = False) -> dict:
        items = ingredients.all() if include_unavailable else ingredients.available()
        return {"ingredients": [item.to_dict() for item in items]}

    @app.get("/ingredients/{ingredient_id}")
    async def get_ingredient(ingredient_id: str) -> dict:
        try:
            return ingredients.get(ingredient_id).to_dict()
        except IngredientNotFound as exc:
            raise _http_error(exc) from exc

    @app.post("/sessions", status_code=201)
    async def open_session() -> dict:
        return sessions.create().snapshot()

    @app.get("/sessions")
    async def list_sessions() -> dict:
        return {"sessions": [session.snapshot() for session in sessions.list()]}

    @app.get("/sessions/{session_id}")
    async def get_session_state(session_id: str) -> dict:
        return get_session(session_id).snapshot()

    @app.delete("/sessions/{session_id}", status_code=204)
    async def close_session(session_id: str) -> Response:
        try:
            sessions.close(session_id)
        except SessionNotFound as exc:
            raise _http_error(exc) from exc
        return Response(status_code=204)

    @app.get("/sessions/{session_id}/layers")
    async def get_layers(session_id: str) -> dict:
        return get_session(session_id).store.to_dict()

    @app.post("/sessions/{session_id}/fill")
    async def fill_cup(session_id: str, payload: schemas.LayerCommandRequest) -> dict:
        session = get_session(session_id)
        try:
            result = session.fill(resolve_ingredient(payload))
        except (InvalidIngredientError, IngredientNotFound) as exc:
            raise _http_error(exc) from exc
        return _layer_response(session, result)

    @app.post("/sessions/{session_id}/drain")
    async def drain_cup(session_id: str, payload: schemas.LayerCommandRequest) -> dict:
        session = get_session(session_id)
        try:
            result = session.drain(resolve_ingredient(payload))
        except (InvalidIngredientError, IngredientNotFound) as exc:
            raise _http_error(exc) from exc
        return _layer_response(session, result)

    @app.post("/sessions/{session_id}/reset")
    async def reset_cup(session_id: str) -> dict:
        session = get_session(session_id)
        return _layer_response(session, session.reset())

    @app.post("/sessions/{session_id}/selections")
    async def add_selection(session_id: str, payload: schemas.SelectionRequest) -> dict:
        session = get_session(session_id)
        try:
            result = session.add_ingredient(available_ingredient(payload.ingredient_id))
        except (InvalidIngredientError, IngredientNotFound) as exc:
            raise _http_error(exc) from exc
        response = _layer_response(session, result)
        response["session"] = session.snapshot()
        return response

    @app.delete("/sessions/{session_id}/selections/{index}")
    async def remove_selection(
        session_id: str,
        index: int = PathParam(..., ge=0),
    ) -> dict:
        session = get_session(session_id)
        try:
            result = session.remove_selection(index)
        except SelectionNotFound as exc:
            raise _http_error(exc) from exc
        response = _layer_response(session, result)
        response["session"] = session.snapshot()
        return response

    @app.post("/sessions/{session_id}/clear")
    async def clear_selections(session_id: str) -> dict:
        session = get_session(session_id)
        response = _layer_response(session, session.clear())
        response["session"] = session.snapshot()
        return response

    @app.put("/sessions/{session_id}/theme", response_model=schemas.CupThemeModel)
    async def set_theme(session_id: str, payload: schemas.ThemeRequest) -> schemas.CupThemeModel:
        session = get_session(session_id)
        try:
            theme = session.set_theme(payload.name)
        except UnknownTheme as exc:
            raise _http_error(exc) from exc
        return schemas.CupThemeModel(**theme.to_dict())

    @app.post("/sessions/{session_id}/draft")
    async def build_draft(
        session_id: str,
        payload: Optional[schemas.DraftRequest] = None,
    ) -> dict:
        session = get_session(session_id)
        try:
            return session.draft(payload.name if payload is not None else None)
        except EmptyDraft as exc:
            raise _http_error(exc) from exc

    LOG.debug("Builder API ready with %d catalog ingredient(s)", len(ingredients))
    return app
