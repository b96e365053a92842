"""Game image access — metadata, object codec protocol, checksum."""

from .models import ImageMetadata, ImageMismatch, parse_metadata, load_metadata
from .codec import ObjectCodec, load_codec, checksum, fix_checksum

__all__ = [
    "ImageMetadata", "ImageMismatch", "parse_metadata", "load_metadata",
    "ObjectCodec", "load_codec", "checksum", "fix_checksum",
]
