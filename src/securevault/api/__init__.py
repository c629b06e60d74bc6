# API Module - FastAPI backend
#
# REST endpoints for signup/login, two-factor management and sealed vault
# items. Build the app with create_app(settings).

from .main import Services, build_services, create_app, start_api_server

__all__ = ["Services", "build_services", "create_app", "start_api_server"]
