import uvicorn
from dostup.config import load_settings
from dostup.logging_utility import logger


if __name__=='__main__':
    settings = load_settings()
    logger.info("Starting Dostup VPN status bar")
    uvicorn.run("dostup.main:app", host=settings.host, port=settings.port)
