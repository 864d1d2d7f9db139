import logging
from collections.abc import Awaitable, Callable

from fastapi.responses import RedirectResponse
from starlette.requests import Request
from starlette.responses import Response

from portal.auth.constants import AUTH_COOKIE_NAME
from portal.session.routes import Action, decide, login_path_for

logger = logging.getLogger(__name__)


async def session_routing_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """
    Gate role-scoped pages on the authToken cookie.

    Never renders an error: a failure while deciding degrades to the login
    redirect for the path.  Errors raised downstream by call_next are not
    caught here.
    """
    path = request.url.path
    try:
        decision = decide(path, request.cookies.get(AUTH_COOKIE_NAME), request.app.state.token_codec)
    except Exception:
        logger.exception("Session routing failed for %s", path)
        return RedirectResponse(login_path_for(path), status_code=307)

    if decision.action is Action.REDIRECT:
        return RedirectResponse(decision.location, status_code=307)

    request.state.session_claims = decision.session
    request.state.pending_approval = decision.pending_approval
    return await call_next(request)
