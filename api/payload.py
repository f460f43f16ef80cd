"""
Request body decoding.

Gumroad sends pings as ``application/x-www-form-urlencoded``; admin tools
tend to send JSON. Both are accepted, and anything unparseable decodes to
an empty mapping so the interpreter can answer with a proper client error.
"""

import logging
from typing import Any

from fastapi import Request

logger = logging.getLogger("api.payload")


async def read_payload(request: Request) -> dict[str, Any]:
    content_type = request.headers.get("content-type", "")

    if "application/json" in content_type:
        try:
            data = await request.json()
        except ValueError:
            logger.warning("Ignoring malformed JSON body")
            return {}
        return data if isinstance(data, dict) else {}

    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}
