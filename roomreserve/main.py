import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from roomreserve import config
from roomreserve.routers import admin, auth, insights, reservations, rooms
from roomreserve.db import SessionLocal, init_database
from roomreserve.seed import seed_database
from roomreserve.services.engine import ReservationEngine
from roomreserve.utils.errors import BookingError

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    "lifespan for initing database and re-arming reservation timers"
    init_database()
    engine = ReservationEngine(SessionLocal)
    db = SessionLocal()
    try:
        if config.SEED_DATABASE:
            seed_database(db)
        engine.recover(db)
    finally:
        db.close()
    app.state.engine = engine
    yield
    engine.shutdown()


app = FastAPI(
    lifespan=lifespan,
    title="RoomReserve",
    description="Classroom reservations with check-in tracking, based on FastAPI.",
    version="0.1.0",
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT",
    },
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(auth.router)
app.include_router(rooms.router)
app.include_router(reservations.router)
app.include_router(insights.router)
app.include_router(admin.router)
