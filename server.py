import os

import uvicorn

from app.Core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8080)),
        reload=settings.app_env == "dev",
        log_level=settings.log_level.lower(),
    )
