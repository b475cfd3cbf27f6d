# app/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.config import CORS_ORIGINS, LOG_LEVEL
from app.routers import game, websocket

# Configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Heart Rush API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API Routers
app.include_router(game.router)
app.include_router(websocket.router)


# Application Lifecycle Events
@app.on_event("shutdown")
async def shutdown_event():
    """Stop any games still running when the server goes down."""
    engines = list(websocket.active_engines.values())
    websocket.active_engines.clear()
    for engine in engines:
        await engine.shutdown()
    logger.info(f"✅ Stopped {len(engines)} running game(s).")


# Root Endpoint
@app.get("/")
async def root():
    """Root endpoint to check if the API is running."""
    return {"message": "Welcome to the Heart Rush API!", "status": "online"}
