import logging

from fastapi import FastAPI

from comfy_video.config.logging_config import setup_logging
from comfy_video.config.settings import get_settings

logger = setup_logging(get_settings().LOG_LEVEL)

app = FastAPI(
    title="ComfyUI Video API",
    description="Image and audio to video generation through ComfyUI workflows",
)


@app.on_event("startup")
async def startup_event():
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    settings = get_settings()
    logger.info(f"\033[1;32mComfyUI video API started, backend at {settings.COMFYUI_API_URL}\033[0m")


from comfy_video.api.router import router

app.include_router(router)


def run():
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().API_PORT)
