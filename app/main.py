"""
Main FastAPI application for the Department Auto-Scheduling Service.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import routes
from app.core.logging_config import setup_logging

setup_logging()

app = FastAPI(
    title="Department Auto-Scheduling API",
    description="API for assigning individuals to department time slots by availability tier",
    version="1.0.0"
)

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],  # Vite dev server default port
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(routes.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Department Auto-Scheduling API",
        "version": "1.0.0",
        "endpoints": {
            "auto": "/api/schedules/auto",
            "batch": "/api/schedules/batch",
            "schedules": "/api/schedules",
            "time_slots": "/api/time-slots/generate",
            "health": "/api/health"
        }
    }
