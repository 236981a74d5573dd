# wellness_intake/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wellness_intake.config import get_settings
from wellness_intake.api.routes import router as api_router


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


configure_logging(get_settings().log_level)

app = FastAPI(title="Wellness Intake API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # for dev; tighten in prod
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


@app.get("/")
def root():
    return {"message": "Wellness Intake API is running"}


app.include_router(api_router, prefix="/api")
