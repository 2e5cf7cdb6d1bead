# studiobook/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers.dashboard import router as dashboard_router
from .routers.health import router as health_router
from .routers.jobs import router as jobs_router
from .routers.migrate import router as migrate_router
from .routers.reminders import router as reminders_router
from .routers.templates import router as templates_router

app = FastAPI(title="Studiobook API", version="1.0.0")

# relaxed for now; tighten to the studio's domains later
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root(): return {"name": "studiobook-api"}


# routers
app.include_router(health_router)
app.include_router(jobs_router)
app.include_router(reminders_router)
app.include_router(templates_router)
app.include_router(dashboard_router)
app.include_router(migrate_router)
