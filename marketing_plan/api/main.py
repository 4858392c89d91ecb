"""Marketing Plan API.

Turns a business questionnaire into a 9-square marketing plan:
- Plans: create, generate (analysis then strategy), read, update, delete
- Delivery: PDF download, completion and share emails
- Catalogue: industries for the questionnaire
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketing_plan import __version__
from marketing_plan.api.routes import auth, industries, plans, questionnaire
from marketing_plan.api.services import Services, get_services, init_services
from marketing_plan.config import Settings
from marketing_plan.db import Database
from marketing_plan.errors import PlanServiceError
from marketing_plan.industries.registry import IndustryRegistry
from marketing_plan.llm.backends import AnthropicBackend
from marketing_plan.llm.client import LLMClient
from marketing_plan.notifications.email import EmailNotifier
from marketing_plan.plans.orchestrator import PlanOrchestrator
from marketing_plan.plans.retry import RetryPolicy
from marketing_plan.plans.store import PlanStore
from marketing_plan.rendering.pdf import PdfRenderer

settings = Settings.from_env()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: build every collaborator once
    logger.info("Initializing database...")
    db = Database(settings.database_url, settings.sqlite_path)
    db.init()
    logger.info(f"Database ready ({'postgres' if db.is_postgres else 'sqlite'})")

    logger.info("Loading industry catalogue...")
    industry_registry = IndustryRegistry()
    logger.info(f"Loaded {industry_registry.count} industries")

    backend = AnthropicBackend(settings.anthropic_api_key, settings.model_id)
    notifier = EmailNotifier(
        api_key=settings.resend_api_key,
        sender=settings.email_from,
        app_base_url=settings.app_base_url,
    )
    store = PlanStore(db)
    orchestrator = PlanOrchestrator(
        store=store,
        llm=LLMClient(backend),
        retry_policy=RetryPolicy(
            retry_budget=settings.retry_budget,
            base_delay_ms=settings.retry_base_delay_ms,
        ),
        notifier=notifier,
    )

    init_services(
        Services(
            settings=settings,
            store=store,
            orchestrator=orchestrator,
            renderer=PdfRenderer(),
            notifier=notifier,
            industries=industry_registry,
        )
    )
    logger.info(f"Marketing Plan API ready (model: {settings.model_id})")
    yield
    # Shutdown
    logger.info("Shutting down Marketing Plan API")
    init_services(None)
    await notifier.close()
    await backend.close()
    db.close()


# Create FastAPI app
app = FastAPI(
    title="Marketing Plan API",
    description="""
## 9-Square Marketing Plan Generator

Submit a business questionnaire, then generate a plan in two model steps
(business analysis, then strategy).

### Key Endpoints

- `POST /plans` - Create a plan from questionnaire responses
- `POST /plans/{id}/generate` - Run analysis and strategy generation
- `GET /plans/{id}` - Get a plan with recent interactions
- `GET /plans/{id}/download` - Download the plan as PDF
- `POST /plans/{id}/email` - Send or share the plan by email
- `GET /industries` - Industry catalogue
""",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PlanServiceError)
async def plan_service_error_handler(request: Request, exc: PlanServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.details})")
    body = {"error": exc.message}
    if exc.details:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": str(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.include_router(plans.router)
app.include_router(questionnaire.router)
app.include_router(industries.router)
app.include_router(auth.router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Marketing Plan API",
        "version": __version__,
        "docs": "/docs",
        "endpoints": {
            "plans": "/plans",
            "questionnaire": "/questionnaire/validate",
            "industries": "/industries",
            "auth": "/auth/register",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    services = get_services()
    return {
        "status": "healthy",
        "database": "postgres" if services.store.db.is_postgres else "sqlite",
        "model": services.settings.model_id,
        "llm_configured": bool(services.settings.anthropic_api_key),
        "email_enabled": services.notifier.enabled,
        "industries_loaded": services.industries.count,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "marketing_plan.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
