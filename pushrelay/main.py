from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from pushrelay import __version__
from pushrelay.api.routes import dispatch
from pushrelay.core.exceptions import global_exception_handler, http_exception_handler, request_validation_exception_handler
from pushrelay.core.lifespan import lifespan
from pushrelay.core.middleware import RequestLoggingMiddleware

app = FastAPI(title="pushrelay", version=__version__, lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
# Routing 404/405s are raised as Starlette exceptions; FastAPI HTTPException subclasses it.
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(dispatch.router, tags=["dispatch"])
