"""Start the health-check server; the bot itself starts from the app lifespan."""
import uvicorn

from app.core.config import settings

if __name__ == "__main__":
    print("=" * 50)
    print(f"  Pharmacy Network Bot on port {settings.PORT}")
    print("=" * 50)
    # uvicorn traps SIGINT/SIGTERM and runs the lifespan shutdown, which stops polling
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
