import logging

from fastapi import FastAPI

from .db import init_db
from .settings import settings
from .routers import progress
from .routers import sessions

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Deliberate Writing Coach API")
app.include_router(sessions.router)
app.include_router(progress.router)


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	init_db()
