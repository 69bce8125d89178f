# main.py (CRUD API)
import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from routers.v1 import api_v1

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)-5.5s [%(name)s] %(message)s",
)

# ------------------------------
# App bootstrap
# ------------------------------
# schema มาจาก alembic เท่านั้น (ไม่ใช้ Base.metadata.create_all)

app = FastAPI(title="Crusher Logistics API", version="1.0")

origins = [
    "http://127.0.0.1:5500",
    "http://localhost:5500",
    "http://127.0.0.1:3000",
    "http://localhost:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"status": "ok"}


app.include_router(api_v1, prefix="/api/v1")
