from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from taskflow.config.settings import Settings
from taskflow.database import Base, engine
from taskflow.exceptions import TaskflowError
from taskflow.logging_setup import setup_logging
from taskflow.routers import tasks, time_log, notifications, assistant
from taskflow.services.scheduler import alert_scheduler

setup_logging()
logger = logging.getLogger("taskflow")

app = FastAPI(title="Taskflow API")


@app.exception_handler(TaskflowError)
async def taskflow_error_handler(request: Request, exc: TaskflowError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings.CORS["origins"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Route registration
app.include_router(tasks.router)
app.include_router(time_log.router)
app.include_router(notifications.router)
app.include_router(assistant.router)


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Taskflow API...")
    Base.metadata.create_all(bind=engine)
    if Settings.SCHEDULER["enabled"]:
        alert_scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Taskflow API...")
    alert_scheduler.stop()


# Root route
@app.get("/")
def read_root():
    return {"message": "Taskflow API"}


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/scheduler/status")
async def get_scheduler_status():
    """Get scheduler status and job information"""
    return await alert_scheduler.get_scheduler_status()


@app.post("/scheduler/trigger/alerts")
async def trigger_alert_refresh():
    """Manually trigger the due-date alert refresh"""
    await alert_scheduler.refresh_alerts()
    return {"message": "Alert refresh triggered successfully", "owners_with_alerts": len(alert_scheduler.last_summary)}
