from usage_analyzer.app.core.errors import register_exception_handlers
from usage_analyzer.app.core.logging import setup_logging

# Configure logging (JSON structured)
logger = setup_logging()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from secure import (
    ContentSecurityPolicy,
    ReferrerPolicy,
    Secure,
    StrictTransportSecurity,
    XContentTypeOptions,
    XFrameOptions,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp

from usage_analyzer.app.api.endpoints import usage
from usage_analyzer.app.core.config import Settings, settings

SECURE_HEADERS = Secure(
    hsts=StrictTransportSecurity().max_age(63072000).include_subdomains(),
    xfo=XFrameOptions().deny(),
    referrer=ReferrerPolicy().strict_origin_when_cross_origin(),
    csp=ContentSecurityPolicy().default_src("'self'").connect_src("'self'"),
    xcto=XContentTypeOptions().nosniff(),
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, secure_headers: Secure, strip_hsts: bool = False) -> None:
        super().__init__(app)
        self.secure_headers = secure_headers
        self.strip_hsts = strip_hsts

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        await self.secure_headers.set_headers_async(response)
        if self.strip_hsts and request.url.scheme not in ("https", "wss"):
            if "Strict-Transport-Security" in response.headers:
                del response.headers["Strict-Transport-Security"]

        # Uploaded billing data must not land in shared caches
        if request.url.path.startswith("/usage/"):
            response.headers["Cache-Control"] = "no-store"

        return response


def create_app(config: Settings = settings) -> FastAPI:
    app = FastAPI(
        title="Actions Usage Analyzer API",
        description="Summarizes GitHub Actions minutes and cost from usage-billing exports",
        version="1.0.0",
        docs_url="/docs" if config.is_dev else None,
        redoc_url="/redoc" if config.is_dev else None,
        openapi_url="/openapi.json" if config.is_dev else None,
    )

    # Register Global Exception Handlers
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    # Reports for long exports compress well
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    if not config.is_dev and "*" in config.trusted_hosts:
        raise RuntimeError("AUA_TRUSTED_HOSTS cannot include '*' in production")
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=config.trusted_hosts)

    app.add_middleware(SecurityHeadersMiddleware, secure_headers=SECURE_HEADERS, strip_hsts=config.is_dev)

    app.include_router(usage.router, prefix="/usage", tags=["usage"])

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "service": "actions-usage-analyzer", "app_env": config.app_env.value}

    return app


app = create_app()
