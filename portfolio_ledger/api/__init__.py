from fastapi import APIRouter

from .routes.holdings import router as holdings_router
from .routes.prices import router as price_router
from .routes.tickers import router as tickers_router
from .routes.transactions import router as transactions_router
from .routes.upload import router as upload_router

api_router = APIRouter()
api_router.include_router(price_router, prefix="/prices", tags=["Prices"])
api_router.include_router(transactions_router, prefix="/transactions", tags=["Transactions"])
api_router.include_router(holdings_router, prefix="/holdings", tags=["Holdings"])
api_router.include_router(tickers_router, prefix="/tickers", tags=["Tickers"])
api_router.include_router(upload_router, prefix="/upload", tags=["Upload"])
