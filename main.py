"""
Exam Portal API — Main Application
FastAPI application for the examination portal.
Assembles CO-balanced MCQ papers per student, records submissions, and scores results.
"""

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import os

from database.database import engine, Base
from database import models  # noqa: F401  (registers tables on Base.metadata)

from routers import student_exams, results

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create tables."""
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title="Exam Portal API",
    description="CO-balanced paper assembly, exam submission and CO-wise result scoring",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─── Routers ───────────────────────────────────────────────────────────────────

app.include_router(student_exams.router)     # /student/exams/*
app.include_router(results.router)           # /results/*


@app.get("/")
def root():
    return {
        "name": "Exam Portal API",
        "version": "1.0.0",
        "endpoints": {
            "docs": "/docs",
            "student_exams": "/student/exams",
            "results": "/results",
        },
    }


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "exam-portal-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=os.getenv("API_HOST", "0.0.0.0"), port=int(os.getenv("API_PORT", "8001")))
