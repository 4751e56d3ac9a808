from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os

# Only load .env file if not running on Heroku
if not os.getenv("DYNO"):  # DYNO is a Heroku-specific environment variable
    from dotenv import load_dotenv
    load_dotenv()

from api import image_edit
from config.settings import settings
from core.errors import ImageEditError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def register_exception_handlers(app: FastAPI) -> None:
    # Registered handlers run inside the CORS middleware, so error responses keep the CORS headers.
    @app.exception_handler(ImageEditError)
    async def handle_image_edit_error(_request: Request, exc: ImageEditError):
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(_request: Request, exc: RequestValidationError):
        fields = sorted({".".join(str(part) for part in err["loc"] if part != "body") for err in exc.errors()})
        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "code": "INVALID_REQUEST",
                    "message": f"Invalid or missing fields: {', '.join(fields) or 'body'}",
                }
            },
        )


def create_app() -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(image_edit.router)

    @app.get("/")
    async def root():
        return {"message": f"{settings.PROJECT_NAME} is running"}

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    @app.get("/api/health")
    async def api_health_check():
        return {"status": "healthy", "service": "api"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", settings.PORT))
    uvicorn.run(app, host=settings.HOST, port=port)
