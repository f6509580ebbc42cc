# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MindHaven Wellness project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.models import database
from app.models import *  # registers all models

from app.routers import entries_router, insights_router, journal_router, healthz_router
from app.services.analytics_engine import InvalidInputError

logging.basicConfig(level=logging.INFO)

# Create DB tables in one go
database.Base.metadata.create_all(bind=database.engine)

app = FastAPI(
    docs_url="/docs",
    redoc_url="/redoc",
    title="MindHaven Wellness API",
    description="Mood, sleep and stress insights with encrypted journaling",
    version="1.0"
)


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


app.include_router(entries_router.router)
app.include_router(insights_router.router)
app.include_router(journal_router.router)
app.include_router(healthz_router.router)


@app.get("/")
def root():
    return {"message": "MindHaven Wellness API is running"}
