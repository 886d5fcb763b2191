import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from sitebuilder.logger import get_logger
from sitebuilder.routes import router

logger = get_logger(__name__)

app = FastAPI(title="Website Builder API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


if __name__ == "__main__":
    logger.info(f"Starting website builder API on port {config.PORT}")
    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT)
