import logging
import time
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from database import engine, Base
from services.errors import SchoolError, StorageFailure

# --- IMPORT ROUTERS (APIs) ---
from routers import auth, users, dashboard, classes, students, teachers, payments, salary_payments, expenses

# --- IMPORT MODELS (so every table is registered before create_all) ---
from models.users import User
from models.classes import SchoolClass
from models.students import Student
from models.teachers import Teacher
from models.payments import TuitionPayment, SalaryPayment
from models.expenses import Expense

logger = logging.getLogger("school")


def configure_logging(config=settings):
    root = logging.getLogger()
    if getattr(root, "_school_logging_configured", False):
        return
    level = config.LOG_LEVEL
    fmt = logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)
    root.addHandler(console)

    if config.LOG_FILE:
        file_handler = RotatingFileHandler(config.LOG_FILE, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    root.setLevel(level)
    root._school_logging_configured = True


configure_logging()

# --- CREATE DATABASE TABLES ---
Base.metadata.create_all(bind=engine)

app = FastAPI(title="School Administration API")


# ==========================================
# REQUEST LOGGING MIDDLEWARE
# ==========================================
@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.debug("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


# ==========================================
# CORS MIDDLEWARE
# ==========================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "x-auth-token"],
)


# ==========================================
# ERROR HANDLERS
# ==========================================
@app.exception_handler(SchoolError)
async def school_error_handler(request: Request, exc: SchoolError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    body = {"detail": exc.detail, "error": exc.kind}
    existing_id = getattr(exc, "existing_id", None)
    if existing_id is not None:
        body["existing_id"] = existing_id
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage failure on %s %s", request.method, request.url.path)
    err = StorageFailure()
    return JSONResponse(status_code=err.status_code, content={"detail": err.detail, "error": err.kind})


# --- REGISTER ROUTERS ---
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(dashboard.router)
app.include_router(classes.router)
app.include_router(students.router)
app.include_router(teachers.router)
app.include_router(payments.router)
app.include_router(salary_payments.router)
app.include_router(expenses.router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
