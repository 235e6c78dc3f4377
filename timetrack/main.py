# timetrack/main.py
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import exc as sa_exc
from timetrack.config import settings
from timetrack.database import engine, Base
from timetrack.models.user import User  # noqa: F401
from timetrack.models.task import Task  # noqa: F401
from timetrack.models.time_log import TimeLog  # noqa: F401
from timetrack.models.daily_summary import DailySummary  # noqa: F401
from timetrack.routers import auth, task, time_log, daily_summary

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("timetrack")


app = FastAPI(title="timetrack - Task & Time Tracking API", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include Routers
app.include_router(auth.router)
app.include_router(task.router)
app.include_router(time_log.router)
app.include_router(daily_summary.router)

# Create DB Tables (use Alembic for managed databases)
@app.on_event("startup")
async def startup_event():
    # ignore duplicate-object errors from previous partial runs.
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "duplicate key value violates unique constraint" in msg or "already exists" in msg:
                logger.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise

@app.get("/")
def read_root():
    return {"message": "Welcome to the timetrack API"}

@app.get("/health")
def health():
    return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("timetrack.main:app", host="0.0.0.0", port=8000, reload=True)
