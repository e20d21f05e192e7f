from fastapi import FastAPI, Request
from dotenv import load_dotenv

load_dotenv()
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.openapi.utils import get_openapi
from database import Base, engine
from datetime import datetime
from exceptions import NotFoundError, ReportIntegrityError, StateConflictError, ValidationError
import models  # noqa: F401  registers every table on Base.metadata
import routers.accounting_periods as accounting_periods
import routers.app_config as app_config
import routers.daily_reports as daily_reports
import routers.financial_reports as financial_reports
import routers.journal_entry as journal_entry
import routers.ledger_accounts as ledger_accounts
import logging
import os


LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
os.makedirs(LOG_DIR, exist_ok=True) # Create the log directory if it doesn't exist

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(LOG_DIR, f"app_{current_time_str}.log")

# Configure the root logger
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE, # Log to a file
    filemode='a' # Append to the file if it exists
)

# Also output logs to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(LOG_LEVEL)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler) # Add to the root logger

logger = logging.getLogger(__name__)
logger.info("Application starting up...")
# --- End Logging Configuration ---


# Create database tables
Base.metadata.create_all(bind=engine)


app = FastAPI()


allowed_origins_str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173"
)

# Split the string into a list, stripping any whitespace
allowed_origins = [origin.strip() for origin in allowed_origins_str.split(',')]

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Domain error translation ---
# "error" carries the exception class name so callers can tell the kinds apart.

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc), "error": type(exc).__name__})


@app.exception_handler(StateConflictError)
async def state_conflict_handler(request: Request, exc: StateConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc), "error": type(exc).__name__})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc), "error": type(exc).__name__})


@app.exception_handler(ReportIntegrityError)
async def report_integrity_handler(request: Request, exc: ReportIntegrityError):
    logger.error(f"Report '{exc.report}' inconsistent for {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc), "error": "report_inconsistent", "report": exc.report},
    )


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Quarry Ledger API",
        version="1.0.0",
        description="Double-entry accounting, financial reports and daily cash chain for quarry operations",
        routes=app.routes,
    )
    openapi_schema["components"]["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    # Apply security globally to all endpoints
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


app.include_router(ledger_accounts.router)
app.include_router(journal_entry.router)
app.include_router(accounting_periods.router)
app.include_router(financial_reports.router)
app.include_router(daily_reports.router)
app.include_router(app_config.router)


@app.get("/")
async def test_route():
    return {"message": "Welcome to the Quarry Ledger API!"}
