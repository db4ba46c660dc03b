from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..errors import NotFound, Unauthorized
from ..models.auth import Identity
from ..services.auth_service import AuthService
from ..services.storage import StorageDirectory
from ..services.upload_service import UploadService
from ..utils.logging import logger

bearer_scheme = HTTPBearer(auto_error=False)


def get_storage(request: Request) -> StorageDirectory:
    return request.app.state.storage


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service


def get_auth_service(request: Request) -> AuthService:
    auth_service = request.app.state.auth_service
    if auth_service is None:
        raise NotFound("authentication disabled")
    return auth_service


def require_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Identity:
    """Gate for restricted routes; runs before any storage access."""
    if credentials is None or not credentials.credentials:
        logger.log_error("token_rejected", {"reason": "missing token", "url": str(request.url)})
        raise Unauthorized("missing token")

    identity = auth_service.authenticate(credentials.credentials)
    request.state.identity = identity
    return identity
