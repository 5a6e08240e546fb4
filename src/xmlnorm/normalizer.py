"""Normalization of XML documents for equality checks in tests."""

import io
import logging
from typing import BinaryIO, Iterable, List, Optional

from .config.models import NormalizerConfig
from .decoder import TokenDecoder
from .encoder import TokenEncoder
from .tokens import (
    Attr,
    CharData,
    Comment,
    Directive,
    EndElement,
    ProcInst,
    StartElement,
    Token,
)

logger = logging.getLogger(__name__)


def sort_attributes(attrs: Iterable[Attr]) -> List[Attr]:
    """Drops namespace declarations and orders the rest by (namespace URI, local name)."""
    kept = [attr for attr in attrs if not attr.is_namespace_declaration()]
    kept.sort(key=lambda attr: (attr.name.space, attr.name.local))
    return kept


class Normalizer:
    """Normalizes XML so that equivalent documents serialize identically.

    The following rules are applied:

    * Namespace prefixes are renamed according to a heuristic of the
      encoder, see :class:`xmlnorm.encoder.PrefixAllocator`.
    * Namespace declarations of the input are removed; the encoder declares
      what the output needs.
    * Attributes of start elements are sorted by namespace URI, then local
      name.
    * Directives and processing instructions, including the XML
      declaration, are removed.
    * Character data consisting only of whitespace is removed if
      ``omit_whitespace`` is set. Other character data is kept untrimmed.
    * Comments are removed if ``omit_comments`` is set.

    The result is not canonical XML as defined by the W3C.
    """

    def __init__(self, config: Optional[NormalizerConfig] = None):
        self.config = config if config is not None else NormalizerConfig()

    def normalize(self, sink: BinaryIO, source: BinaryIO) -> None:
        """Writes the normalized XML content of ``source`` to ``sink``.

        Raises:
            XmlSyntaxError: If ``source`` is not well-formed.
            XmlIOError: If reading ``source`` or writing ``sink`` fails.
                ``sink`` then holds partial output only.
        """
        written = 0
        with TokenEncoder(sink) as encoder:
            for token in TokenDecoder(source):
                normalized = self.normalize_token(token)
                if normalized is None:
                    continue
                encoder.encode(normalized)
                written += 1
            encoder.flush()
        logger.debug("Normalized document with %d tokens", written)

    def normalize_token(self, token: Token) -> Optional[Token]:
        """Returns the token to emit for ``token``, or None to drop it."""
        if isinstance(token, (Directive, ProcInst)):
            return None
        if isinstance(token, Comment):
            return None if self.config.omit_comments else token
        if isinstance(token, CharData):
            if self.config.omit_whitespace and not token.text.strip():
                return None
            return token
        if isinstance(token, StartElement):
            return StartElement(token.name, tuple(sort_attributes(token.attrs)))
        if isinstance(token, EndElement):
            return token
        raise TypeError(f"Unknown token type: {type(token).__name__}")

    def normalize_bytes(self, data: bytes) -> bytes:
        buffer = io.BytesIO()
        self.normalize(buffer, io.BytesIO(data))
        return buffer.getvalue()

    def equal_xml(self, a: BinaryIO, b: BinaryIO) -> bool:
        """Tests the normalized XML contents of ``a`` and ``b`` for equality.

        ``a`` is normalized completely before ``b`` is read. Errors of either
        pass propagate and no comparison takes place.
        """
        buffer = io.BytesIO()
        self.normalize(buffer, a)
        normalized_a = buffer.getvalue()
        buffer = io.BytesIO()
        self.normalize(buffer, b)
        return normalized_a == buffer.getvalue()


def normalize(sink: BinaryIO, source: BinaryIO, config: Optional[NormalizerConfig] = None) -> None:
    Normalizer(config).normalize(sink, source)


def normalize_bytes(data: bytes, config: Optional[NormalizerConfig] = None) -> bytes:
    return Normalizer(config).normalize_bytes(data)


def equal_xml(a: BinaryIO, b: BinaryIO, config: Optional[NormalizerConfig] = None) -> bool:
    return Normalizer(config).equal_xml(a, b)
