import uvicorn

from image_proxy.config import settings

if __name__ == "__main__":
    uvicorn.run("image_proxy.main:app", host=settings.host, port=settings.port)
