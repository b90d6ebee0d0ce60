import os
import uvicorn

from app.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    dev = os.environ.get("ENV", "dev") == "dev"
    port = int(os.environ.get("PORT", 8000))
    log_level = "debug" if settings.debug else "info"

    if dev:
        uvicorn.run("app.main:app", host="127.0.0.1", port=port, reload=True, log_level=log_level)
    else:
        # quiz sessions live in process memory, so run a single worker
        uvicorn.run("app.main:app", host="0.0.0.0", port=port, workers=1, log_level=log_level)
