"""Normalization of XML documents for equality checks in tests."""

from .config.models import NormalizerConfig
from .errors import NormalizeError, XmlIOError, XmlSyntaxError
from .normalizer import Normalizer, equal_xml, normalize, normalize_bytes

__all__ = [
    "Normalizer",
    "NormalizerConfig",
    "NormalizeError",
    "XmlIOError",
    "XmlSyntaxError",
    "equal_xml",
    "normalize",
    "normalize_bytes",
]
