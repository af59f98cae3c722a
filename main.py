from logging_config import setup_logging

# Initialize logging BEFORE anything else
setup_logging()

from logging_config import get_logger, request_id_var
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from middleware import RequestLifecycleMiddleware
from routes import notifications, tasks
from exceptions import NotificationError, NotificationValidationError, TransientStoreFailure
from config import config

logger = get_logger("app")

app = FastAPI(title="TaskHub API")

# CORS remains here as it's a global setting
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL] if config.ENV == "production" else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request lifecycle middleware (request ID, context vars, duration logging)
app.add_middleware(RequestLifecycleMiddleware)


@app.exception_handler(NotificationError)
async def notification_error_handler(request: Request, exc: NotificationError):
    content = {"detail": exc.message, "request_id": request_id_var.get("-")}
    if isinstance(exc, NotificationValidationError):
        content["errors"] = exc.errors
    if isinstance(exc, TransientStoreFailure):
        content["retryable"] = True
    return JSONResponse(status_code=exc.status_code, content=content)


# REGISTER ROUTERS
app.include_router(notifications.router)
app.include_router(tasks.router)

logger.info("All routers registered, TaskHub API ready")

@app.get("/")
async def root():
    return {"status": "online", "message": "TaskHub API is running"}
