import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

import database
import models  # registers the tables on Base.metadata
from config import settings
from exceptions import SchedulingError, InternalFailure
from routers import appointment, doctor, slot, visit, patient, notification

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = database.init_engine(settings.database_url, pool_size=settings.db_pool_size,
                                  max_overflow=settings.db_max_overflow, pool_recycle=settings.db_pool_recycle)
    database.Base.metadata.create_all(bind=engine)
    logger.info("Clinic scheduling service started")
    yield
    database.dispose_engine()
    logger.info("Clinic scheduling service stopped")


app = FastAPI(title="Clinic Scheduling API", lifespan=lifespan)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    if isinstance(exc, InternalFailure):
        return JSONResponse(status_code=exc.status_code, content={"detail": "Internal server error"})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(appointment.router)
app.include_router(doctor.router)
app.include_router(slot.router)
app.include_router(visit.router)
app.include_router(patient.router)
app.include_router(notification.router)


@app.get("/health")
def health():
    return {"status": "ok"}
