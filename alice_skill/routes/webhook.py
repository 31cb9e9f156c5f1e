import logging
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import anyio
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from pydantic import ValidationError

from ..db.database import get_store
from ..db.store import MessageStore, StoreError
from ..schemas import TYPE_SIMPLE_UTTERANCE, ResponsePayload, SkillRequest, SkillResponse

logger = logging.getLogger(__name__)

router = APIRouter()

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def resolve_timezone(name: str) -> tzinfo:
    # an empty name means UTC and "Local" the server zone, same as the platform does
    if name in ("", "UTC"):
        return timezone.utc
    if name == "Local":
        return datetime.now().astimezone().tzinfo
    return ZoneInfo(name)


def now_in(tz: tzinfo) -> datetime:
    return datetime.now(tz)


def compose_text(count: int) -> str:
    if count == 0:
        return "Для вас нет новых сообщений."
    return f"Для вас {count} новых сообщений."


def greeting(now: datetime, text: str) -> str:
    return f"Точное время {now.hour} часов, {now.minute} минут. {text}"


@router.api_route("/", methods=ALL_METHODS)
async def webhook(request: Request, store: MessageStore = Depends(get_store)) -> Response:
    # only POST is allowed
    if request.method != "POST":
        logger.debug("got request with bad method %s", request.method)
        return Response(status_code=405)

    # a body that cannot be decoded is reported as a server error
    logger.debug("decoding request")
    try:
        req = SkillRequest.model_validate_json(await request.body())
    except ValidationError as e:
        logger.debug("cannot decode request JSON body: %s", e)
        return Response(status_code=500)

    if req.request.type != TYPE_SIMPLE_UTTERANCE:
        logger.debug("unsupported request type %r", req.request.type)
        return Response(status_code=422)

    user_id = req.session.user.user_id
    try:
        messages = await anyio.to_thread.run_sync(store.list_messages, user_id)
    except StoreError as e:
        logger.error("cannot load messages for user %r: %s", user_id, e)
        return Response(status_code=500)

    text = compose_text(len(messages))

    # first request of a new session gets the current time as well
    if req.session.new:
        try:
            tz = resolve_timezone(req.timezone)
        except (ZoneInfoNotFoundError, ValueError, OSError) as e:
            logger.debug("cannot parse timezone %r: %s", req.timezone, e)
            return Response(status_code=400)
        text = greeting(now_in(tz), text)

    resp = SkillResponse(response=ResponsePayload(text=text))
    try:
        payload = resp.model_dump_json()
    except ValueError as e:
        logger.error("error encoding response: %s", e)
        return Response(status_code=500)

    logger.debug("sending HTTP 200 response")
    return Response(content=payload, media_type="application/json")
