from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_ledger.api import api_router
from portfolio_ledger.core.config import settings
from portfolio_ledger.core.db import init_db
from portfolio_ledger.core.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database initialized")
    yield
    logger.info("Database connection closed")


app = FastAPI(lifespan=lifespan, title="Portfolio Ledger API", version="1.0.0", debug=settings.DEBUG)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Portfolio Ledger API is running", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=settings.UVICORN_LOG_LEVEL.lower())
