import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from donation_desk import models
from donation_desk.config import settings
from donation_desk.database import engine

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables
    models.Base.metadata.create_all(bind=engine)
    settings.media_root.mkdir(parents=True, exist_ok=True)
    yield


app = FastAPI(
    title="Street Cause Donations API",
    description="Collects donations, lets admins moderate them and issues supporter posters",
    version="1.0.0",
    lifespan=lifespan,
)

app.mount(settings.media_url, StaticFiles(directory=settings.media_root, check_dir=False), name="media")


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "street-cause-donations"}


from donation_desk.routers import admin, donations  # noqa: E402
app.include_router(donations.router, prefix="/api/v1/donations", tags=["donations"])
app.include_router(admin.router, prefix="/api/v1/admin/donations", tags=["admin"])
