"""Storage destinations for reuploaded media and manifests."""

from .base import AbstractDestination, Destination, validate_simple_filename
from .factory import DESTINATION_REGISTRY, create_destination

__all__ = [
    "AbstractDestination",
    "Destination",
    "DESTINATION_REGISTRY",
    "create_destination",
    "validate_simple_filename",
]
