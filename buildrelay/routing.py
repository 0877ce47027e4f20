"""
Request routing by exact (method, path) match.

Routes live in a mapping so new entries never touch dispatch logic. Anything
unmatched, including a known path with the wrong method, gets a plain-text 404.
"""

import logging
from typing import Awaitable, Callable, Dict, Tuple

from fastapi import Request, Response, status
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]

NOT_FOUND_BODY = "Not Found"


async def not_found(request: Request) -> Response:
    """Fixed response for any unrouted request."""
    logger.debug(f"No route for {request.method} {request.url.path}")
    return PlainTextResponse(NOT_FOUND_BODY, status_code=status.HTTP_404_NOT_FOUND)


class Router:
    """Static route table keyed by (method, path)."""

    def __init__(self):
        self._routes: Dict[Tuple[str, str], Handler] = {}

    def add(self, method: str, path: str, handler: Handler) -> None:
        key = (method.upper(), path)
        if key in self._routes:
            raise ValueError(f"Route already registered: {method.upper()} {path}")
        self._routes[key] = handler

    def resolve(self, method: str, path: str) -> Handler:
        """Return the handler for an exact (method, path) pair, or not_found."""
        return self._routes.get((method, path), not_found)

    async def dispatch(self, request: Request) -> Response:
        handler = self.resolve(request.method, request.url.path)
        return await handler(request)

    def __len__(self) -> int:
        return len(self._routes)
