"""Source document parsing."""

from .models import ContentDocument, RenderedPage
from .parsers import load_document, serialize_front_matter, split_front_matter

__all__ = [
    "ContentDocument",
    "RenderedPage",
    "load_document",
    "serialize_front_matter",
    "split_front_matter",
]
