"""Run script for the image exchange service"""

import uvicorn

from image_exchange.config import Settings

if __name__ == "__main__":
    settings = Settings()
    uvicorn.run(
        "image_exchange.main:create_app",
        factory=True,
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
