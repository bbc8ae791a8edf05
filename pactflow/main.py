import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Depends, FastAPI
from sqlalchemy.ext.asyncio import AsyncSession

from pactflow.config import Settings
from pactflow.database import create_engine, create_session_factory
from pactflow.middleware import RequestContextLogFilter, RequestContextMiddleware

VERSION = "0.1.0"


def configure_logging(log_level: str) -> None:
    """Set up logging with request ID and actor role injected into every log line."""
    log_filter = RequestContextLogFilter()
    formatter = logging.Formatter(
        "%(asctime)s [%(request_id)s] [%(actor_role)s] %(levelname)s %(name)s: %(message)s"
    )

    # basicConfig is a no-op once uvicorn has installed its handlers
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    handler.addFilter(log_filter)
    root_logger.addHandler(handler)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncGenerator:
    """Manage application lifecycle: set up DB engine on startup, dispose on shutdown."""
    settings: Settings = application.state.settings
    engine = create_engine(settings)
    application.state.engine = engine
    application.state.session_factory = create_session_factory(engine)

    yield

    await application.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory."""
    settings = settings or Settings()

    application = FastAPI(
        title="Pactflow",
        description="Contract lifecycle and KPI engine",
        version=VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    application.state.settings = settings

    configure_logging(settings.LOG_LEVEL)
    application.add_middleware(RequestContextMiddleware)

    # One session per request: committed when the route returns, rolled back on error
    async def get_session() -> AsyncGenerator[AsyncSession, None]:
        async with application.state.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    from pactflow.repositories.audit_repo import AuditRepository
    from pactflow.repositories.contract_repo import ContractRepository
    from pactflow.routers.contracts import get_lifecycle_service, router as contracts_router
    from pactflow.routers.dashboard import get_kpi_service, router as dashboard_router
    from pactflow.services.kpi_service import KPIService
    from pactflow.services.lifecycle_service import LifecycleService

    async def get_lifecycle_service_with_session(
        session: AsyncSession = Depends(get_session),
    ) -> LifecycleService:
        return LifecycleService(
            ContractRepository(session),
            AuditRepository(session),
            identity_domain=settings.SYSTEM_IDENTITY_DOMAIN,
            max_attempts=settings.TRANSITION_MAX_ATTEMPTS,
        )

    async def get_kpi_service_with_session(
        session: AsyncSession = Depends(get_session),
    ) -> KPIService:
        return KPIService(ContractRepository(session), policy=settings.expiry_policy())

    application.include_router(contracts_router, prefix="/api/v1")
    application.include_router(dashboard_router, prefix="/api/v1")
    application.dependency_overrides[get_lifecycle_service] = get_lifecycle_service_with_session
    application.dependency_overrides[get_kpi_service] = get_kpi_service_with_session

    @application.get("/health", tags=["Health Check"])
    async def health_check():
        return {"status": "healthy", "version": VERSION}

    return application


app = create_app()
