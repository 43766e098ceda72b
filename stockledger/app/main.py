from fastapi import FastAPI

from stockledger.app.api.v1.router import router as v1_router
from stockledger.app.core.logging import configure_logging

configure_logging()

app = FastAPI(title="STOCKLEDGER FIFO", version="0.1.0")
app.include_router(v1_router, prefix="/v1")
