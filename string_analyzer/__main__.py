import uvicorn

from string_analyzer.config import get_settings


def run() -> None:
    settings = get_settings()
    uvicorn.run("string_analyzer.main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    run()
