import uvicorn
from cramitup.core.config import settings
from cramitup.main import check_startup_config

if __name__ == "__main__":
    check_startup_config()
    uvicorn.run("cramitup.main:app", host="0.0.0.0", port=settings.PORT)
