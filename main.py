import os

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import config
from sitechat.logger import get_logger
from sitechat.routes import router

logger = get_logger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="sitechat")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    os.makedirs(config.PROSPECTS_DIR, exist_ok=True)
    app.mount(
        "/prospects",
        StaticFiles(directory=config.PROSPECTS_DIR),
        name="prospects",
    )
    return app


app = create_app()


if __name__ == "__main__":
    logger.info(f"Starting sitechat server on port {config.PORT}")
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
