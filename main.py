import logging

from fastapi import FastAPI

import catalog_service
from catalog_router import router as catalog_router
from checklist_router import router as checklist_router
from db import connect_db
from db_migrations import apply_migrations
from progress_router import router as progress_router
from tracker_service import Tracker

app = FastAPI(title="Raider Tracker")
app.include_router(catalog_router)
app.include_router(progress_router)
app.include_router(checklist_router)


@app.on_event("startup")
def _startup():
    conn = connect_db()
    apply_migrations(conn)
    catalog = catalog_service.load_default_catalog()
    app.state.db_conn = conn
    app.state.tracker = Tracker.open(conn, catalog)
    logging.info("Tracker ready with %d progress keys", len(app.state.tracker.progress.progress))


@app.on_event("shutdown")
def _shutdown():
    conn = getattr(app.state, "db_conn", None)
    if conn is not None:
        conn.close()
