import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from core.auth import auth_backend, fastapi_users
from core.config import settings
from core.errors import setup_exception_handlers
from core.logging import configure_logging
from db.database import create_db_and_tables, create_engine, create_session_maker
from db.seed import seed_reason_codes
from routers.inventory import router as inventory_router
from routers.ledger import router as ledger_router
from routers.reasons import router as reasons_router
from routers.sales import router as sales_router
from schemas.users import UserCreate, UserRead, UserUpdate
from services.branch_inventory import BranchInventoryQuery
from services.ledger import InventoryLedger
from services.reasons import ReasonRegistry
from services.stores import InventoryStore

logger = logging.getLogger("inventory.app")


async def startup(app: FastAPI, engine: AsyncEngine) -> None:
    """Create tables, seed reason codes and attach the services to app.state."""
    await create_db_and_tables(engine)
    session_maker = create_session_maker(engine)
    await seed_reason_codes(session_maker)

    app.state.engine = engine
    app.state.session_maker = session_maker
    app.state.inventory_ledger = InventoryLedger(InventoryStore(session_maker))
    app.state.reason_registry = ReasonRegistry(session_maker)
    app.state.branch_inventory = BranchInventoryQuery(session_maker)


def create_app(database_url: Optional[str] = None) -> FastAPI:
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_engine(database_url)
        await startup(app, engine)
        logger.info("Branch stock ledger API started")
        yield
        await engine.dispose()

    app = FastAPI(
        title="Branch Stock Ledger API",
        description="Stock balances per branch and the ledger of sales, write-offs and adjustments",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_exception_handlers(app)

    # Authentication routes (fastapi-users)
    app.include_router(fastapi_users.get_auth_router(auth_backend), prefix="/auth/jwt", tags=["auth"])
    app.include_router(fastapi_users.get_register_router(UserRead, UserCreate), prefix="/auth", tags=["auth"])
    app.include_router(fastapi_users.get_users_router(UserRead, UserUpdate), prefix="/users", tags=["users"])

    # Inventory ledger routes
    app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
    app.include_router(sales_router, prefix="/sales", tags=["sales"])
    app.include_router(ledger_router, prefix="/ledger", tags=["ledger"])
    app.include_router(reasons_router, prefix="/reasons", tags=["reasons"])
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
