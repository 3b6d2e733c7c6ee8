from yuki.services.providers.base import ImageInput, ModelGateway
from yuki.services.providers.factory import get_gateway

__all__ = [
    "ImageInput",
    "ModelGateway",
    "get_gateway",
]
