"""Parameter assembler — one flat parameter set per request.

Three sources overlay in a fixed order, later ones winning::

    query string  <  path variables  <  body (JSON object or form)

Multi-valued query and form keys contribute their first value. JSON
values are passed through verbatim, nesting included.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from pico.errors import BadRequest
from pico.http.request import Request

logger = logging.getLogger("pico.pipeline")

JSON_TYPES = frozenset({"application/json"})
FORM_TYPES = frozenset({"application/x-www-form-urlencoded"})


async def assemble_params(request: Request, path_params: Mapping[str, str]) -> dict[str, Any]:
    """Build the parameter set for *request*.

    Raises:
        BadRequest: The body is not valid JSON, is JSON but not an
            object, is an undecodable form, or uses a content type
            that cannot carry parameters.
    """
    params: dict[str, Any] = {key: request.query.get(key) for key in request.query}
    params.update(path_params)
    params.update(await body_params(request))
    return params


async def body_params(request: Request) -> dict[str, Any]:
    """The body's contribution to the parameter set.

    An empty body contributes nothing. A body without a content type is
    read as JSON.
    """
    body = await request.body()
    if not body.strip():
        return {}

    content_type = request.content_type
    if content_type is None or content_type in JSON_TYPES or content_type.endswith("+json"):
        return _json_object(body)
    if content_type in FORM_TYPES:
        try:
            form = await request.form()
        except ValueError as exc:
            msg = "Form body is not valid UTF-8 form data"
            raise BadRequest(msg) from exc
        return {key: form[key] for key in form}

    msg = f"Unsupported content type {content_type!r}"
    raise BadRequest(msg)


def _json_object(body: bytes) -> dict[str, Any]:
    try:
        value = json.loads(body)
    except ValueError as exc:
        logger.debug("Rejecting JSON body: %s", exc)
        msg = "Request body is not valid JSON"
        raise BadRequest(msg) from exc
    if not isinstance(value, dict):
        msg = f"JSON body must be an object, got {type(value).__name__}"
        raise BadRequest(msg)
    return value
