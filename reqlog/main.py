from fastapi import FastAPI

from reqlog.api.customers import router as customers_router
from reqlog.observability.logging import configure_logging
from reqlog.observability.middleware import install_request_metadata


app = FastAPI(title="reqlog", version="0.1.0")
install_request_metadata(app)
app.include_router(customers_router)


@app.on_event("startup")
def _startup() -> None:
    configure_logging()


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
