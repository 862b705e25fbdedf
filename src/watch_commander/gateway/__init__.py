"""Generation gateway: domain requests in, normalized objects or failures out."""

from .extraction import (
    BraceScanExtractor,
    JsonExtractor,
    StrictJsonExtractor,
    extract_json_object,
)
from .gateway import GatewayFailure, GatewayResult, GenerationGateway, RequestKind

__all__ = [
    "BraceScanExtractor",
    "JsonExtractor",
    "StrictJsonExtractor",
    "extract_json_object",
    "GatewayFailure",
    "GatewayResult",
    "GenerationGateway",
    "RequestKind",
]
