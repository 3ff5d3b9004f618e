# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Description: main.py
# -----------------------------------------------------------------------------
from fastapi import FastAPI
from api.routers import embeddings, health, search, stats
import logging

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",)
app = FastAPI(title="Call Search API")
app.include_router(health.router)
app.include_router(embeddings.router)
app.include_router(search.router)
app.include_router(stats.router)
