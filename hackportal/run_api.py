# run_api.py
import uvicorn

from hackportal.config import Settings


def main() -> None:
    settings = Settings()
    uvicorn.run(
        "hackportal.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
