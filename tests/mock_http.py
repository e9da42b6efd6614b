"""
Mock HTTP helpers for WebFinger client tests.

Provides mocked aiohttp sessions and responses so that lookups can be driven
through scripted HTTP exchanges without network access.
"""

import json
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

from aiohttp import ClientResponse, ClientSession
from multidict import CIMultiDict


PROFILE_REL = "http://webfinger.net/rel/profile-page"
AVATAR_REL = "http://webfinger.net/rel/avatar"


def make_response(
    status: int = 200,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    content_type: Optional[str] = "application/jrd+json",
) -> AsyncMock:
    """Create a mock aiohttp response. Non-string bodies are JSON encoded."""
    response = AsyncMock(spec=ClientResponse)
    response.status = status
    response_headers = CIMultiDict(headers or {})
    if content_type is not None:
        response_headers.setdefault("Content-Type", content_type)
    response.headers = response_headers
    if body is None:
        text = ""
    elif isinstance(body, str):
        text = body
    else:
        text = json.dumps(body)
    response.text.return_value = text
    return response


def redirect(location: Optional[str], status: int = 302) -> AsyncMock:
    headers = {"Location": location} if location is not None else {}
    return make_response(status, headers=headers, content_type=None)


def make_session(*responses) -> AsyncMock:
    """
    Create a mock session whose get() yields the given responses in order.

    An exception instance in place of a response is raised when entering the
    request context instead.
    """
    session = AsyncMock(spec=ClientSession)
    contexts = []
    for response in responses:
        context = MagicMock()
        if isinstance(response, BaseException):
            context.__aenter__.side_effect = response
        else:
            context.__aenter__.return_value = response
        context.__aexit__.return_value = False
        contexts.append(context)
    session.get = MagicMock(side_effect=contexts)
    return session


def requested_urls(session: AsyncMock) -> list:
    return [call.args[0] for call in session.get.call_args_list]


def jrd(*links: Dict[str, Any], **extra: Any) -> Dict[str, Any]:
    return {"links": list(links), **extra}
