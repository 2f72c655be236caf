from collections.abc import Awaitable, Callable, Iterable

from fastapi import Request
from fastapi.responses import RedirectResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

DEFAULT_HSTS_MAX_AGE_SECONDS = 31536000


class HTTPSEnforcerMiddleware(BaseHTTPMiddleware):
    """Redirect HTTP to HTTPS and add HSTS header when enabled.

    Paths in ``exempt_paths`` are served over plain HTTP so load-balancer
    health probes keep working behind TLS termination.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        force_https: bool = False,
        exempt_paths: Iterable[str] = (),
        hsts_max_age_seconds: int = DEFAULT_HSTS_MAX_AGE_SECONDS,
    ) -> None:
        super().__init__(app)
        self._force_https = force_https
        self._exempt_paths = frozenset(exempt_paths)
        self._hsts_value = f"max-age={hsts_max_age_seconds}; includeSubDomains"

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if not self._force_https or request.url.path in self._exempt_paths:
            return await call_next(request)

        forwarded_proto = request.headers.get("x-forwarded-proto", "")
        current_scheme = forwarded_proto.split(",")[0].strip() or request.url.scheme
        if current_scheme.lower() != "https":
            https_url = request.url.replace(scheme="https")
            return RedirectResponse(url=str(https_url), status_code=307)

        response = await call_next(request)
        response.headers.setdefault("Strict-Transport-Security", self._hsts_value)
        return response
