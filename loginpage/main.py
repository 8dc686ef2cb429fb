# loginpage/main.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.httpsredirect import HTTPSRedirectMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from loginpage.core.auth import BearerTokenMiddleware, SessionRefreshMiddleware, is_public_path
from loginpage.core.config import settings
from loginpage.core.db import Base, engine
from loginpage.core.logging_config import configure_logging
from loginpage.models.user import User  # noqa: F401  registers the users table
from loginpage.routers.account import router as account_router
from loginpage.routers.health import router as health_router
from loginpage.services.users import check_cosmos_container

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "One or more validation errors occurred."

app = FastAPI(title="LoginPage API")

# added innermost first; CORS ends up outermost so preflights never hit the gate
app.add_middleware(SessionRefreshMiddleware)
app.add_middleware(BearerTokenMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
if settings.FORCE_HTTPS:
    app.add_middleware(HTTPSRedirectMiddleware)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for err in exc.errors():
        if err.get("type") == "json_invalid":
            field = "body"
        else:
            loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query")]
            field = ".".join(loc) or "body"
        errors.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": VALIDATION_MESSAGE, "errors": errors},
    )


def init_storage() -> None:
    if settings.COSMOS_CONNECTION_STRING:
        check_cosmos_container()
        return
    Base.metadata.create_all(bind=engine)
    logger.info("Relational backend ready (%s), tables: %s", engine.url.get_backend_name(), list(Base.metadata.tables.keys()))


init_storage()

routers = [
    health_router,
    account_router,
]

for r in routers:
    app.include_router(r)

for r in app.routes:
    logger.debug("route %s %s", getattr(r, "methods", None), getattr(r, "path", None))


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version="1.0.0",
        description="Account registration, email verification and login",
        routes=app.routes,
    )
    comps = schema.setdefault("components", {})
    schemes = comps.setdefault("securitySchemes", {})
    schemes["BearerAuth"] = {"type": "http", "scheme": "bearer"}
    for path, path_item in schema.get("paths", {}).items():
        public = is_public_path(path)
        for op in list(path_item.values()):
            if isinstance(op, dict):
                op["security"] = [] if public else [{"BearerAuth": []}]
    app.openapi_schema = schema
    return app.openapi_schema


app.openapi = custom_openapi


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("loginpage.main:app", host="0.0.0.0", port=8000)
