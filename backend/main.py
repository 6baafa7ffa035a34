import os

from fastapi.openapi.utils import get_openapi
from dotenv import load_dotenv

# Load environment variables for development before settings are read
load_dotenv()  # This reads .env into os.environ

from app.main import app  # noqa: E402


def custom_openapi() -> dict:
    """Return OpenAPI schema with project metadata."""
    if app.openapi_schema:
        return app.openapi_schema
    app.openapi_schema = get_openapi(
        title="Chef Booking API",
        version="1.0.0",
        description="Bookings, availability, reviews and payouts for a personal-chef marketplace.",
        routes=app.routes,
    )
    return app.openapi_schema


app.openapi = custom_openapi

if __name__ == "__main__":
    import uvicorn

    workers = int(os.getenv("UVICORN_WORKERS", "1"))
    keepalive = int(os.getenv("UVICORN_KEEPALIVE", "65"))
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("UVICORN_RELOAD", "0") == "1",
        workers=workers,
        timeout_keep_alive=keepalive,
    )
