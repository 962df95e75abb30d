from fastapi import FastAPI
from app.db import Base, engine
import app.models  # noqa: F401 ensure models are imported so tables are known
from app.api.routes import router as api_router
from app.utils import logger

# create FastAPI instance
app = FastAPI(title="Teamfinder")
app.include_router(api_router)


@app.on_event("startup")
def on_startup_create_tables():
    # Ensure database tables are created on startup
    try:
        Base.metadata.create_all(bind=engine)
    except Exception:
        # Do not crash the app if migrations are preferred; keep running
        logger.exception("Could not create tables on startup")
