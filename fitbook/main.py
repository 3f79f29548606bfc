import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fitbook.api.v1.bookings import router as bookings_router
from fitbook.api.v1.trainers import router as trainers_router
from fitbook.core.config import settings
from fitbook.wiring.dependencies import get_repository


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("booking_id", "trainer_id", "user_id", "status", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Runs migrations and seeds reference data once per process.
    get_repository()
    logging.getLogger(__name__).info("Fitbook started ENV=%s", settings.ENV)
    yield


app = FastAPI(title=settings.APP_NAME, version="1.0.0", lifespan=lifespan)

app.include_router(trainers_router, prefix="/api", tags=["trainers"])
app.include_router(bookings_router, prefix="/api", tags=["bookings"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("fitbook.main:app", host="0.0.0.0", port=3000)
