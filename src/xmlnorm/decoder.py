"""Pull-style XML tokenizer on top of lxml's XMLPullParser."""

import logging
import re
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple

import lxml.etree as ET

from .errors import XmlIOError, XmlSyntaxError
from .tokens import (
    XMLNS_NAMESPACE,
    Attr,
    CharData,
    Comment,
    Directive,
    EndElement,
    Name,
    ProcInst,
    StartElement,
    Token,
)

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

_XML_DECLARATION = re.compile(rb"^(?:\xef\xbb\xbf)?<\?xml\s+(.*?)\s*\?>", re.DOTALL)


class TokenDecoder:
    """Reads XML from a binary source and yields tokens in document order.

    Character data between two structural tokens is read from the tree,
    after the node produced by the earlier event. It is only read once the
    following event exists, at which point lxml has finished collecting it.
    CDATA sections are kept as nodes of their own and reported as separate
    ``CharData`` tokens. Text outside the document element is not reported,
    since libxml2 does not keep it in the tree.
    """

    def __init__(self, source: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.source = source
        self.chunk_size = chunk_size
        self._parser = ET.XMLPullParser(events=("start", "end", "comment", "pi"), strip_cdata=False)
        self._pending: Optional[Tuple[ET._Element, str]] = None
        self._depth = 0
        self._first_chunk = True
        self._has_content = False

    def __iter__(self) -> Iterator[Token]:
        return self.tokens()

    def tokens(self) -> Iterator[Token]:
        while True:
            chunk = self._read()
            if not chunk:
                break
            if self._first_chunk:
                self._first_chunk = False
                declaration = _XML_DECLARATION.match(chunk)
                if declaration:
                    yield ProcInst("xml", declaration.group(1).decode("utf-8", "replace"))
            if not self._has_content and chunk.strip():
                self._has_content = True
            self._feed(chunk)
            yield from self._drain()

        if not self._has_content:
            logger.debug("XML input is empty")
            return
        try:
            self._parser.close()
        except ET.XMLSyntaxError as e:
            raise _syntax_error(e) from e
        yield from self._drain()
        for text in self._pending_text():
            yield CharData(text)

    def _read(self) -> bytes:
        try:
            return self.source.read(self.chunk_size)
        except OSError as e:
            raise XmlIOError(f"Failed to read XML input: {e}") from e

    def _feed(self, chunk: bytes) -> None:
        try:
            self._parser.feed(chunk)
        except ET.XMLSyntaxError as e:
            raise _syntax_error(e) from e

    def _drain(self) -> Iterator[Token]:
        try:
            events = list(self._parser.read_events())
        except ET.XMLSyntaxError as e:
            raise _syntax_error(e) from e

        for event, node in events:
            for text in self._pending_text():
                yield CharData(text)

            if event == "start":
                if self._depth == 0:
                    doctype = node.getroottree().docinfo.doctype
                    if doctype:
                        yield Directive(doctype[2:-1])
                self._depth += 1
                yield StartElement(Name.from_clark(node.tag), tuple(_attributes(node)))
                self._pending = (node, "text")
            elif event == "end":
                self._depth -= 1
                yield EndElement(Name.from_clark(node.tag))
                self._pending = (node, "tail") if self._depth else None
            elif event == "comment":
                yield Comment(node.text or "")
                self._pending = (node, "tail") if self._depth else None
            elif event == "pi":
                yield ProcInst(node.target, node.text or "")
                self._pending = (node, "tail") if self._depth else None

    def _pending_text(self) -> List[str]:
        if self._pending is None:
            return []
        node, attr = self._pending
        self._pending = None
        if not getattr(node, attr):
            return []
        return _text_nodes(node, "child" if attr == "text" else "following-sibling")


def _text_nodes(node: ET._Element, axis: str) -> List[str]:
    """Text and CDATA nodes along ``axis`` up to the first node of another kind.

    ``node.text`` and ``node.tail`` join these, so they are read one by one.
    """
    pieces: List[str] = []
    while True:
        found = node.xpath(f"{axis}::node()[{len(pieces) + 1}][self::text()]")
        if not found:
            return pieces
        pieces.append(str(found[0]))


def _attributes(node: ET._Element) -> List[Attr]:
    """Namespace declarations made by ``node`` followed by its attributes."""
    attrs: List[Attr] = []
    parent = node.getparent()
    inherited: Dict[Optional[str], str] = parent.nsmap if parent is not None else {}
    for prefix, uri in node.nsmap.items():
        if inherited.get(prefix) == uri:
            continue
        if prefix is None:
            attrs.append(Attr(Name("", "xmlns"), uri))
        else:
            attrs.append(Attr(Name(XMLNS_NAMESPACE, prefix), uri))
    for key, value in node.attrib.items():
        attrs.append(Attr(Name.from_clark(key), value))
    return attrs


def _syntax_error(error: ET.XMLSyntaxError) -> XmlSyntaxError:
    lineno, position = error.position if error.position else (None, None)
    return XmlSyntaxError(error.msg or str(error), lineno=lineno, position=position)
