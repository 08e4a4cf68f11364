"""Example Starlette integration.

Routes:
    GET  /auth/{provider}               redirect the user agent to the provider
    GET  /social/{provider}/callback    provider callback (query parameters)
    POST /social/{provider}/callback    provider callback (form_post, Apple)

Browser (web) attempts are keyed by an HttpOnly cookie. Other platforms
complete statelessly: the app posts the code and state it received on its
deep link, and the state itself identifies the attempt.

Run with ``python -m socialgate.examples.callback_app`` after setting the
``SOCIALGATE_*`` variables (see ``socialgate.settings``).
"""

from __future__ import annotations

import contextlib
import html
import json
import logging
import os
import secrets
from typing import Any, AsyncIterator

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from starlette.routing import Route

from socialgate.client import SocialAuthClient
from socialgate.models.flow import AuthorizationResponse
from socialgate.services.platforms import WEB
from socialgate.settings import load_settings_from_env

logger = logging.getLogger(__name__)

ATTEMPT_COOKIE = "socialgate_attempt"

POST_MESSAGE_PAGE = """<!doctype html>
<html><head><meta charset="utf-8"><title>Signing in</title></head>
<body>
<script>
  (function () {{
    var payload = {payload};
    if (window.opener) {{
      window.opener.postMessage({{ type: "socialgate:{outcome}", payload: payload }}, {origin});
      window.close();
    }} else {{
      document.body.textContent = "You can close this window.";
    }}
  }})();
</script>
</body></html>
"""


def _script_json(value: Any) -> str:
    return json.dumps(value).replace("</", "<\\/")


def _post_message_page(outcome: str, payload: dict[str, Any], origin: str) -> str:
    return POST_MESSAGE_PAGE.format(
        outcome=html.escape(outcome),
        payload=_script_json(payload),
        origin=_script_json(origin),
    )


def create_app(client: SocialAuthClient) -> Starlette:
    """Build the example application around a configured client."""

    async def start_login(request: Request) -> Response:
        provider = request.path_params["provider"]
        platform = client.platforms.detect_platform(
            request.headers.get("user-agent"), request.query_params.get("platform")
        )
        attempt_key = secrets.token_urlsafe(16) if platform == WEB else None

        try:
            redirect = await client.redirect_url(provider, platform, attempt_key)
        except Exception as e:
            payload = client.errors.to_payload(e)
            return JSONResponse(payload, status_code=client.errors.http_status(e))

        response = RedirectResponse(redirect.url, status_code=302)
        if attempt_key:
            secure = request.url.scheme == "https"
            response.set_cookie(
                ATTEMPT_COOKIE,
                attempt_key,
                max_age=int(client.settings.state_ttl),
                httponly=True,
                secure=secure,
                # Apple's form_post callback is a cross-site POST
                samesite="none" if secure else "lax",
            )
        return response

    async def callback(request: Request) -> Response:
        provider = request.path_params["provider"]
        if request.method == "POST":
            params = dict(await request.form())
        else:
            params = dict(request.query_params)

        platform = str(params.get("platform") or client.platforms.default_platform())
        attempt_key = request.cookies.get(ATTEMPT_COOKIE) if platform == WEB else None

        try:
            post_message = client.platforms.requires_post_message(platform)
        except Exception as e:
            payload = client.errors.to_payload(e)
            return JSONResponse(payload, status_code=client.errors.http_status(e))

        try:
            identity = await client.complete(
                provider,
                AuthorizationResponse.from_params(params),
                platform,
                attempt_key=attempt_key,
            )
        except Exception as e:
            payload = client.errors.to_payload(e)
            status = client.errors.http_status(e)
            if post_message:
                response: Response = HTMLResponse(
                    _post_message_page("error", payload, _origin(request)),
                    status_code=status,
                )
            else:
                response = JSONResponse(payload, status_code=status)
            response.delete_cookie(ATTEMPT_COOKIE)
            return response

        record = identity.to_dict()
        if post_message:
            response = HTMLResponse(
                _post_message_page("success", record, _origin(request))
            )
        else:
            response = JSONResponse(record)
        response.delete_cookie(ATTEMPT_COOKIE)
        return response

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        yield
        await client.close()

    return Starlette(
        routes=[
            Route("/auth/{provider}", start_login, methods=["GET"]),
            Route(
                "/social/{provider}/callback", callback, methods=["GET", "POST"]
            ),
        ],
        lifespan=lifespan,
    )


def _origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    settings = load_settings_from_env()
    app = create_app(SocialAuthClient(settings))
    uvicorn.run(
        app,
        host=os.getenv("SOCIALGATE_HOST", "127.0.0.1"),
        port=int(os.getenv("SOCIALGATE_PORT", "8000")),
        log_level="info",
    )


if __name__ == "__main__":
    main()
