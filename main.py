import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import LOG_LEVEL, get_cors_origins
from app.db.session import engine, Base
from app.models import Admin, Project, Apartment, Lead, LeadContact, LeadNote  # noqa: F401
from app.services.errors import BookkeepingError
from app.api.auth import router as auth_router
from app.api.projects import router as projects_router
from app.api.apartments import router as apartments_router
from app.api.leads import router as leads_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Realty Leads & Inventory API")


@app.middleware("http")
async def add_noindex_header(request: Request, call_next):
    """Keep search engines off the API host; the public site is served elsewhere."""
    response = await call_next(request)
    response.headers["X-Robots-Tag"] = "noindex, nofollow"
    return response


@app.exception_handler(BookkeepingError)
async def bookkeeping_error_handler(request: Request, exc: BookkeepingError):
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "error": type(exc).__name__},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create tables
Base.metadata.create_all(bind=engine)

app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(apartments_router)
app.include_router(leads_router)


@app.get("/api/health")
def health():
    return {"status": "OK"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
