import os
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from dotenv import load_dotenv

from contestverse.database import Database
from contestverse.routes.user.user_routes import router as user_router
from contestverse.routes.user.creator_routes import router as creator_router
from contestverse.routes.contest.contest_routes import router as contest_router
from contestverse.routes.contest.submission_routes import router as submission_router
from contestverse.routes.payment.payment_routes import router as payment_router
from contestverse.services.errors import ServiceError
from contestverse.utils.response import error_response, validation_error_response

# Load environment variables
load_dotenv()

# Get environment variables
APP_NAME = os.getenv("APP_NAME", "ContestVerse")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for the application"""
    # Startup; an unreachable store aborts the process
    await Database.connect_db()
    yield
    # Shutdown
    await Database.close_db()


app = FastAPI(
    title=APP_NAME,
    version=APP_VERSION,
    description="ContestVerse API: contests, entry payments, submissions and winners",
    lifespan=lifespan
)

# CORS middleware
# In development, allow all origins for easier testing
DEBUG = os.getenv("DEBUG", "True").lower() == "true"

cors_origins = [
    FRONTEND_URL,
    "http://localhost:3000",
    "http://localhost:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if not DEBUG else ["*"],
    allow_credentials=not DEBUG,  # Can't use credentials with wildcard origin
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Render service failures as {success: false, message}"""
    if exc.status_code >= 500:
        print(f"[ERROR] {request.method} {request.url.path}: {exc.message}")
    return error_response(message=exc.message, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", [])[1:]) or "body"
        errors[field] = error.get("msg")
    return validation_error_response(errors=errors)


# Routes mirror the web client's paths, no /api prefix
app.include_router(user_router)
app.include_router(creator_router)
app.include_router(contest_router)
app.include_router(submission_router)
app.include_router(payment_router)


@app.get("/")
async def read_root():
    """Root endpoint"""
    return {
        "message": f"{APP_NAME} is contesting!!",
        "version": APP_VERSION,
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
