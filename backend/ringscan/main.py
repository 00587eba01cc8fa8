import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ringscan.core.config import settings
from ringscan.core.exceptions import EXCEPTION_HANDLERS
from ringscan.routers import upload, scan, rings, accounts
from ringscan.utils.hasher import get_timestamp

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Detection of money-mule rings: dated, fee-shrinking transaction cycles",
    version=settings.app_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(upload.router)
app.include_router(scan.router)
app.include_router(rings.router)
app.include_router(accounts.router)


@app.get("/health")
async def health_check():
    store = upload.state.store
    return {
        "status": "ok",
        "timestamp": get_timestamp(),
        "graph_loaded": store is not None,
        "accounts": len(store) if store is not None else 0,
        "transactions": store.transaction_count if store is not None else 0,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
