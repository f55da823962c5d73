"""Trivia backend endpoints: register, submit, leaderboard.

Actions are selected with ``?action=`` on ``/api/trivia`` or by path
(``/api/trivia/submit``). Errors are answered as ``{"error": message}``.
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from trivia.api.deps import RepoDep, SettingsDep, check_api_key
from trivia.config import Settings
from trivia.core.leaderboard import parse_limit, query_leaderboard
from trivia.core.registration import parse_registration, register
from trivia.core.submissions import parse_submission, route_submission
from trivia.db.repository import Repository
from trivia.errors import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trivia", tags=["trivia"])

NOT_FOUND = {"error": "Not Found"}


async def _read_json(request: Request) -> dict:
    """Return the request body as a JSON object, or raise ValidationError (400)."""
    raw = await request.body()
    try:
        data = json.loads(raw) if raw else None
    except ValueError:
        data = None
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON", status_code=400)
    return data


async def _register(request: Request, repo: Repository, settings: Settings) -> dict:
    registration = parse_registration(await _read_json(request))
    await register(repo, registration)
    return {"success": True}


async def _submit(request: Request, repo: Repository, settings: Settings) -> dict:
    check_api_key(request, settings)
    source_ip = request.client.host if request.client else None
    submission = parse_submission(await _read_json(request), source_ip=source_ip)
    result = await route_submission(repo, submission, strict_weeks=settings.trivia_strict_weeks)
    return {"success": True, "overflow": result.overflow}


async def _leaderboard(request: Request, repo: Repository, settings: Settings) -> dict:
    params = request.query_params
    limit = parse_limit(params.get("limit"), settings.trivia_leaderboard_default_limit)
    board = await query_leaderboard(
        repo,
        rsn=(params.get("rsn") or "").strip() or None,
        limit=limit,
        default_limit=settings.trivia_leaderboard_default_limit,
    )
    return board.model_dump()


POST_ACTIONS = {"register": _register, "submit": _submit}
GET_ACTIONS = {"leaderboard": _leaderboard}


async def _dispatch(
    actions: dict,
    action: str,
    request: Request,
    repo: Repository,
    settings: Settings,
) -> dict | JSONResponse:
    handler = actions.get(action.strip("/"))
    if handler is None:
        logger.info("trivia_api_not_found method=%s action=%s", request.method, action)
        return JSONResponse(NOT_FOUND, status_code=404)
    return await handler(request, repo, settings)


@router.post("", response_model=None)
async def post_action(
    request: Request,
    repo: RepoDep,
    settings: SettingsDep,
    action: str = "",
) -> dict | JSONResponse:
    return await _dispatch(POST_ACTIONS, action, request, repo, settings)


@router.get("", response_model=None)
async def get_action(
    request: Request,
    repo: RepoDep,
    settings: SettingsDep,
    action: str = "",
) -> dict | JSONResponse:
    return await _dispatch(GET_ACTIONS, action, request, repo, settings)


@router.post("/{action}", response_model=None)
async def post_action_path(
    action: str,
    request: Request,
    repo: RepoDep,
    settings: SettingsDep,
) -> dict | JSONResponse:
    return await _dispatch(POST_ACTIONS, action, request, repo, settings)


@router.get("/{action}", response_model=None)
async def get_action_path(
    action: str,
    request: Request,
    repo: RepoDep,
    settings: SettingsDep,
) -> dict | JSONResponse:
    return await _dispatch(GET_ACTIONS, action, request, repo, settings)
