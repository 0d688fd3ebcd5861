from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from api.routes.alerts import router as alerts_router
from api.routes.calendar import router as calendar_router
from api.routes.sessions import router as sessions_router
from api.routes.status import router as status_router
from api.routes.volume import router as volume_router
from storage.db import connect, init_db

app = FastAPI(title="FX Sessions API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.getenv("API_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(status_router)
app.include_router(sessions_router)
app.include_router(volume_router)
app.include_router(alerts_router)
app.include_router(calendar_router)


@app.on_event("startup")
def _startup() -> None:
    conn = connect()
    try:
        init_db(conn)
    finally:
        conn.close()


def main() -> None:
    import uvicorn

    uvicorn.run("api.app:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
