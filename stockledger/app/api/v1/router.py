from fastapi import APIRouter

from stockledger.app.api.v1.endpoints.products import router as products_router
from stockledger.app.api.v1.endpoints.stock_entries import router as stock_entries_router
from stockledger.app.api.v1.endpoints.stock_outputs import router as stock_outputs_router
from stockledger.app.api.v1.endpoints.transactions import router as transactions_router

router = APIRouter()
router.include_router(products_router, tags=["products"])
router.include_router(stock_entries_router, tags=["stock_entries"])
router.include_router(stock_outputs_router, tags=["stock_outputs"])
router.include_router(transactions_router, tags=["transactions"])
