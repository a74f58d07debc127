import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth import USER_HEADER
from .config import CORS_ORIGINS
from .database import Base, DocumentMissingError, SessionLocal, TransactionAbortedError, engine
from .domain.ledger.router import router as ledger_router
from .domain.ledger.service import LedgerService
from .domain.notifications.router import router as notifications_router
from .domain.schedule.router import router as schedule_router
from .domain.schedule.service import ScheduleService
from .domain.users.router import auth_router
from .domain.users.router import router as users_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def init_store() -> None:
    """Create tables and the documents every operation expects to exist"""
    Base.metadata.create_all(bind=engine, checkfirst=True)
    db = SessionLocal()
    try:
        created = ScheduleService(db).seed()
        LedgerService(db).ensure_bank()
        logger.info(f"Store initialized ({created} day document(s) created)")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        init_store()
    except Exception as e:
        logger.error(f"Failed to initialize the store: {e}")
        raise
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Gym Agenda API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(TransactionAbortedError)
async def transaction_aborted_handler(request: Request, exc: TransactionAbortedError):
    logger.warning(f"⚠️ {request.method} {request.url.path} gave up after conflicts: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "The data changed while saving, please retry"},
    )


@app.exception_handler(DocumentMissingError)
async def document_missing_handler(request: Request, exc: DocumentMissingError):
    logger.error(f"❌ {request.method} {request.url.path} aborted, missing document: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


logger.info(f"CORS allowed origins: {CORS_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", USER_HEADER],
)

# Routes
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(schedule_router)
app.include_router(ledger_router)
app.include_router(notifications_router)


@app.get("/")
def root():
    return {"message": "Gym Agenda API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
