from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware

from app.api.v1 import api_router
from app.core.errors import register_exception_handlers
from app.core.limiter import limiter
from app.core.logging import configure_logging
from app.core.settings import settings
from app.db.session import AsyncSessionLocal
from app.events import register_event_handlers
from app.middlewares.request_context import RequestContextMiddleware
from app.services.loan_review import build_loan_review_service
from app.services.notifications import BackgroundDispatcher


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Loan Review Backend", version="0.1.0")
    register_exception_handlers(app)
    app.state.limiter = limiter
    app.state.dispatcher = BackgroundDispatcher()
    app.state.loan_review_service = build_loan_review_service(
        settings,
        dispatcher=app.state.dispatcher,
        session_factory=AsyncSessionLocal,
    )
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router, prefix="/api/v1")
    register_event_handlers(app)
    return app


app = create_app()
