import logging
import uuid
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from tutorpress import __version__
from tutorpress.config import Settings, settings
from tutorpress.exceptions import register_exception_handlers
from tutorpress.routers import auth, bundles, certificates
from tutorpress.routers.base import NAMESPACE, get_addon_checker
from tutorpress.services.feature_flags import AddonChecker


def configure_logging(config: Settings) -> None:
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    if config.log_format == "json":
        import json as json_mod

        class JsonFormatter(logging.Formatter):
            def format(self, record):
                log_data = {
                    "timestamp": self.formatTime(record),
                    "level": record.levelname,
                    "message": record.getMessage(),
                    "module": record.module,
                    "request_id": getattr(record, "request_id", None),
                }
                if record.exc_info:
                    log_data["exception"] = self.formatException(record.exc_info)
                return json_mod.dumps(log_data)

        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logging.root.handlers = [handler]
        logging.root.setLevel(level)
        return

    logging.basicConfig(level=level)


logger = logging.getLogger("tutorpress")


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def health_check(checker: AddonChecker = Depends(get_addon_checker)):
    """Health check endpoint, with the Tutor LMS plugins this site runs"""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "version": __version__,
        "tutor_lms_active": checker.is_tutor_lms_active(),
        "tutor_pro_active": checker.is_tutor_pro_active(),
        "addons": checker.get_all_addon_status(),
    }


def create_app(config: Settings = settings) -> FastAPI:
    """Build the application and its route table."""
    configure_logging(config)

    app = FastAPI(
        title="TutorPress API",
        description="REST endpoints for Tutor LMS course bundles and certificate templates",
        version=__version__,
        debug=config.debug,
    )

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    prefix = f"{config.rest_prefix.rstrip('/')}/{NAMESPACE}"
    app.include_router(auth.build_router(), prefix=prefix)
    app.include_router(bundles.build_router(), prefix=prefix)
    app.include_router(certificates.build_router(), prefix=prefix)

    app.add_api_route("/health", health_check, methods=["GET"])

    logger.info("Routes mounted under %s", prefix)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
