from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from linkedin_login.config import settings
from linkedin_login.database import SessionLocal, init_db
from linkedin_login.services.log_stream import LogHub, attach_log_hub, detach_log_hub
from linkedin_login.services.login import LoginOrchestrator
from linkedin_login.services.session_repository import SessionRepository
from linkedin_login.services.storage import DatabaseStorageAdapter


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables, ensure directories exist, start the log feed
    Path("data").mkdir(exist_ok=True)
    init_db()
    log_handler = attach_log_hub(app.state.log_hub)
    yield
    # Shutdown: stop any login still in flight so its browser gets closed
    await app.state.orchestrator.lock.cancel_all()
    detach_log_hub(log_handler)


def create_app(orchestrator: Optional[LoginOrchestrator] = None) -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        lifespan=lifespan,
    )
    # Sessions for admin-triggered logins live on the account rows.
    app.state.orchestrator = orchestrator or LoginOrchestrator(
        repository=SessionRepository(storage=DatabaseStorageAdapter(SessionLocal)),
    )
    app.state.log_hub = LogHub()

    from linkedin_login.routes.api_accounts import router as accounts_router

    app.include_router(accounts_router, prefix="/api", tags=["accounts"])

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
