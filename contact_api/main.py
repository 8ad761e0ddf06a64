# run it with `contact-api` or `uvicorn contact_api.main:app --reload`
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from dotenv import load_dotenv
import logging
import uvicorn

from contact_api.api.api_router import api_router
from contact_api.core.config import Settings, get_settings
from contact_api.core.exceptions import RateLimitExceeded, StorageError
from contact_api.core.mailer import Mailer
from contact_api.core.rate_limit import RateLimiter

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to MongoDB on startup unless a store was injected, close on shutdown"""
    from contact_api.db.contact_store import CONTACTS_COLLECTION, ContactStore
    from contact_api.db.init_db import initialize_database, verify_database_setup
    from contact_api.db.mongo import connect

    client = None
    if app.state.contact_store is None:
        client, db = connect(app.state.settings.mongodb_uri)

        if await initialize_database(db):
            logger.info("Database initialization completed successfully")
        else:
            # Keep serving; requests will report storage errors until Mongo is reachable
            logger.warning("Database initialization completed with warnings")

        verification = await verify_database_setup(db)
        if verification.get("overall_status") != "PASS":
            logger.warning(f"Database verification status: {verification.get('overall_status')}")

        app.state.contact_store = ContactStore(db[CONTACTS_COLLECTION])

    if not app.state.mailer.configured:
        logger.warning("Email transport not configured; confirmation emails will fail and be logged")

    yield

    if client is not None:
        client.close()
        app.state.contact_store = None
        logger.info("MongoDB connections closed successfully")


def create_app(settings: Settings = None, contact_store=None, mailer: Mailer = None,
               rate_limiter: RateLimiter = None) -> FastAPI:
    """
    Build the application.

    Collaborators default to the ones described by `settings`; tests pass
    their own store, mailer and limiter instead.
    """
    settings = settings or get_settings()

    app = FastAPI(title="Contact Us API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.contact_store = contact_store
    app.state.mailer = mailer or Mailer.from_settings(settings)
    app.state.rate_limiter = rate_limiter or RateLimiter.from_settings(settings)

    # CORS setup
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return PlainTextResponse(exc.message, status_code=429, headers=exc.headers)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(f"Storage error on {request.method} {request.url.path}: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={"message": "Storage is unavailable.", "error": str(exc)}
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Global exception: {exc}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "client": request.client.host if request.client else "unknown",
            }
        )
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error.", "error": str(exc)}
        )

    @app.get("/api/health")
    def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "env_vars": {
                "mongodb_uri": bool(settings.mongodb_uri),
                "email_configured": app.state.mailer.configured,
            },
        }

    return app


app = create_app()


def run():
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
