import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from kisansetu.api.rest_routes.advisory import router as advisory_router
from kisansetu.api.rest_routes.profiles import router as profiles_router
from kisansetu.api.rest_routes.soil import router as soil_router
from kisansetu.api.rest_routes.weather import router as weather_router
from kisansetu.api.websocket.endpoints import router as websocket_router
from kisansetu.core.config import settings
from kisansetu.core.mongodb import close_mongo_client, init_mongo_client

load_dotenv()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_mongo_client()
    yield
    await close_mongo_client()


app = FastAPI(lifespan=lifespan)

app.include_router(websocket_router, tags=["websocket"])
app.include_router(profiles_router)
app.include_router(advisory_router)
app.include_router(soil_router)
app.include_router(weather_router)


@app.get("/")
async def root():
    return {"message": "Welcome to KisanSetu, your farming advisor!"}
