"""Education center ERP backend entrypoint."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.erp.api import auth
from backend.erp.api import directory
from backend.erp.api import invoices
from backend.erp.api import lessons
from backend.erp.api import payments
from backend.erp.core.logging import configure_logging
from backend.erp.core.settings import get_settings
from backend.erp.db.base import Base
from backend.erp.db.session import engine

settings = get_settings()
configure_logging()

Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(directory.router)
app.include_router(lessons.router)
app.include_router(invoices.router)
app.include_router(payments.router)


@app.get("/")
def read_root():
    return {"app": "EduCenter ERP backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}
