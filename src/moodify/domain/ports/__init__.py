"""Domain ports (interfaces) for the media core."""

from moodify.domain.ports.backend_client import Authorizer, IBackendClient
from moodify.domain.ports.media_service import IMediaService, MediaServiceError, ServiceType
from moodify.domain.ports.token_vault import ITokenVault

__all__ = [
    "Authorizer",
    "IBackendClient",
    "IMediaService",
    "ITokenVault",
    "MediaServiceError",
    "ServiceType",
]
