from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
import logging
import os
import sys

import config
from dependencies import limiter, validation_detail
from storage import build_storage, seed_storage
from uploads import URL_PREFIX

# Routers
from routers.auth import router as auth_router
from routers.tasks import router as tasks_router
from routers.messages import router as messages_router
from routers.employee_notes import router as employee_notes_router
from routers.users import router as users_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Shiftboard",
    description="Aufgaben, wichtige Nachrichten und Mitarbeiter-Notizen für den Arbeitsplatz",
    version="1.0.0"
)

# Speicher-Backend (memory oder sql), für Handler über app.state erreichbar
app.state.storage = build_storage()
if config.SEED_DATA:
    seed_storage(app.state.storage)
app.state.upload_dir = config.UPLOAD_DIR
app.state.max_upload_bytes = config.MAX_UPLOAD_BYTES

# Rate Limiter Setup (limiter imported from dependencies)
app.state.limiter = limiter


# Custom Rate Limit Handler
def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded):
    limit_info = str(exc.limit.limit) if getattr(exc, "limit", None) else "rate"
    return JSONResponse(
        status_code=429,
        content={"detail": f"Too many requests ({limit_info} exceeded). Please wait a moment."},
    )
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_handler)


# Validierungsfehler als 400 statt FastAPIs 422
def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": validation_detail(exc.errors())})
app.add_exception_handler(RequestValidationError, validation_exception_handler)


def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
app.add_exception_handler(Exception, unhandled_exception_handler)


# Custom Middleware for Security Headers
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Content-Security-Policy"] = "default-src 'self'; script-src 'self' 'unsafe-inline' 'unsafe-eval'; style-src 'self' 'unsafe-inline';"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        return response

app.add_middleware(SecurityHeadersMiddleware)

# Session-Cookie (signiert) trägt die Identität {id, username, role}
app.add_middleware(
    SessionMiddleware,
    secret_key=config.SECRET_KEY,
    same_site="lax",
    https_only=(config.ENV == "production")
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=config.ALLOWED_HOSTS
)

# Include Routers
app.include_router(auth_router)
app.include_router(tasks_router)
app.include_router(messages_router)
app.include_router(employee_notes_router)
app.include_router(users_router)

# Hochgeladene Aufgabenbilder
os.makedirs(config.UPLOAD_DIR, exist_ok=True)
app.mount(URL_PREFIX, StaticFiles(directory=config.UPLOAD_DIR), name="uploads")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
