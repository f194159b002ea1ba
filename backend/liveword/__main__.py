"""Run the relay with uvicorn: python -m liveword"""
import uvicorn

from liveword.config.settings import settings


def main():
    uvicorn.run(
        "liveword.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    main()
