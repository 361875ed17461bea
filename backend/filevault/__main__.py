"""Run the API with uvicorn: ``python -m filevault``."""
import uvicorn

from filevault.config import settings


def main() -> None:
    uvicorn.run("filevault.main:app", host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    main()
