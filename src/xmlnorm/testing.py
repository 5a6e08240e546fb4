"""Assertion helpers for comparing XML in tests."""

import difflib
import io
from typing import BinaryIO, Optional, Union

from .config.models import NormalizerConfig
from .normalizer import Normalizer

XmlInput = Union[bytes, str, BinaryIO]


def _as_stream(value: XmlInput) -> BinaryIO:
    if isinstance(value, str):
        return io.BytesIO(value.encode("utf-8"))
    if isinstance(value, bytes):
        return io.BytesIO(value)
    return value


def normalized_text(value: XmlInput, config: Optional[NormalizerConfig] = None) -> str:
    buffer = io.BytesIO()
    Normalizer(config).normalize(buffer, _as_stream(value))
    return buffer.getvalue().decode("utf-8")


def diff_xml(expected: XmlInput, actual: XmlInput, config: Optional[NormalizerConfig] = None) -> str:
    """Unified diff of the normalized documents, one tag per line. Empty if equal."""
    expected_text = normalized_text(expected, config)
    actual_text = normalized_text(actual, config)
    if expected_text == actual_text:
        return ""
    diff = difflib.unified_diff(
        _split_tags(expected_text),
        _split_tags(actual_text),
        fromfile="expected",
        tofile="actual",
        lineterm="",
    )
    return "\n".join(diff)


def assert_xml_equal(expected: XmlInput, actual: XmlInput, config: Optional[NormalizerConfig] = None) -> None:
    """Fails with a readable diff unless both documents normalize identically."""
    diff = diff_xml(expected, actual, config)
    if diff:
        raise AssertionError(f"XML documents differ after normalization:\n{diff}")


def _split_tags(text: str):
    # The normalized output is a single line; break it before every tag so
    # the diff points at the element that differs.
    return text.replace("<", "\n<").lstrip("\n").split("\n")
