import uvicorn

from linkedin_login.config import settings
from linkedin_login.utils.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging()
    uvicorn.run(
        "linkedin_login.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
