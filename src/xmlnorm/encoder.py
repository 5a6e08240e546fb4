"""Token serializer driving lxml's incremental ``xmlfile`` writer.

The encoder never reuses the prefixes of the input. Every namespace URI is
given a prefix by :class:`PrefixAllocator` the first time it is seen in the
output document, and that prefix is used for the rest of the document.
Declarations are written on the first element that needs them and are not
repeated inside its scope. Elements are never put in a default namespace.
"""

import logging
import re
from contextlib import contextmanager
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Set, Tuple

import lxml.etree as ET

from .errors import XmlIOError
from .tokens import (
    XML_NAMESPACE,
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

_NCNAME = re.compile(r"[^\W\d][\w.\-]*\Z")


class PrefixAllocator:
    """Maps namespace URIs to prefixes, scoped to one output document.

    The candidate prefix is the last non-empty ``/`` separated segment of
    the URI. Candidates that are not NCNames become ``_``, candidates
    starting with ``xml`` in any case get a ``_`` prepended. When the
    candidate already belongs to another URI a ``_<n>`` suffix is added,
    with ``n`` taken from a counter that only grows within the document.
    """

    def __init__(self) -> None:
        self._prefixes: Dict[str, str] = {XML_NAMESPACE: "xml"}
        self._uris: Dict[str, str] = {"xml": XML_NAMESPACE}
        self._seq = 0

    def prefix_for(self, uri: str) -> str:
        prefix = self._prefixes.get(uri)
        if prefix is None:
            prefix = self._allocate(uri)
            self._prefixes[uri] = prefix
            self._uris[prefix] = uri
        return prefix

    def _allocate(self, uri: str) -> str:
        candidate = uri.rstrip("/").rsplit("/", 1)[-1]
        if not _NCNAME.match(candidate):
            candidate = "_"
        elif candidate[:3].lower() == "xml":
            candidate = "_" + candidate
        if candidate not in self._uris:
            return candidate
        while True:
            self._seq += 1
            numbered = f"{candidate}_{self._seq}"
            if numbered not in self._uris:
                return numbered


class TokenEncoder:
    """Writes tokens to a binary sink.

    Use as a context manager; call :meth:`flush` after the last token.
    Directives and processing instructions are not accepted.

    The lxml writer only serializes a single element tree. It is opened at
    the start of the document element and closed at its end. Comments and
    whitespace before and after it are serialized straight to the sink.
    """

    def __init__(self, sink: BinaryIO, encoding: str = "utf-8"):
        self.sink = sink
        self.encoding = encoding
        self.prefixes = PrefixAllocator()
        self._entered = False
        self._context: Any = None
        self._writer: Any = None
        self._root_closed = False
        # (element context manager, URIs declared on that element)
        self._stack: List[Tuple[Any, Set[str]]] = []
        self._in_scope: Set[str] = set()

    def __enter__(self) -> "TokenEncoder":
        self._entered = True
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        context, self._context = self._context, None
        self._entered = False
        self._writer = None
        self._stack = []
        if context is None:
            return False
        if exc_type is not None:
            try:
                context.__exit__(exc_type, exc, tb)
            except (OSError, ET.LxmlError):
                # Report the exception that aborted encoding.
                logger.debug("Error closing the XML writer after a failure", exc_info=True)
            return False
        with _writer_errors():
            return context.__exit__(None, None, None)

    def encode(self, token: Token) -> None:
        if not self._entered:
            raise RuntimeError("TokenEncoder must be entered before encoding")
        if isinstance(token, StartElement):
            self._start(token)
        elif isinstance(token, EndElement):
            self._end(token)
        elif isinstance(token, CharData):
            if self._stack:
                with _writer_errors():
                    self._writer.write(token.text)
                return
            if token.text.strip():
                raise ValueError("Only whitespace can appear outside the document element")
            self._write_raw(token.text.encode(self.encoding))
        elif isinstance(token, Comment):
            comment = ET.Comment(token.text)
            if self._stack:
                with _writer_errors():
                    self._writer.write(comment)
                return
            self._write_raw(ET.tostring(comment, encoding=self.encoding, xml_declaration=False))
        elif isinstance(token, (Directive, ProcInst)):
            raise ValueError(f"Cannot encode {type(token).__name__} tokens")
        else:
            raise TypeError(f"Unknown token type: {type(token).__name__}")

    def flush(self) -> None:
        if self._stack:
            raise ValueError(f"{len(self._stack)} element(s) still open at flush")
        sink_flush = getattr(self.sink, "flush", None)
        if sink_flush is not None:
            with _writer_errors():
                sink_flush()

    def _open_writer(self) -> None:
        self._context = ET.xmlfile(self.sink, encoding=self.encoding)
        with _writer_errors():
            self._writer = self._context.__enter__()

    def _write_raw(self, data: bytes) -> None:
        with _writer_errors():
            self.sink.write(data)

    def _start(self, token: StartElement) -> None:
        if self._root_closed:
            raise ValueError(f"Start element {token.name.local!r} after the document element")
        if self._writer is None:
            self._open_writer()
        declared: Set[str] = set()
        nsmap: Dict[str, str] = {}

        def qualify(name: Name) -> str:
            if not name.space:
                return name.local
            if name.space == XML_NAMESPACE:
                # Bound in every document, but unknown to lxml's writer.
                return f"{self.prefixes.prefix_for(name.space)}:{name.local}"
            if name.space not in self._in_scope and name.space not in declared:
                declared.add(name.space)
                nsmap[self.prefixes.prefix_for(name.space)] = name.space
            return name.to_clark()

        tag = qualify(token.name)
        attrib: Dict[str, str] = {}
        for attr in token.attrs:
            attrib[qualify(attr.name)] = attr.value

        element = self._writer.element(tag, attrib, nsmap=nsmap or None)
        with _writer_errors():
            element.__enter__()
        self._stack.append((element, declared))
        self._in_scope |= declared

    def _end(self, token: EndElement) -> None:
        if not self._stack:
            raise ValueError(f"End element {token.name.local!r} without matching start")
        element, declared = self._stack.pop()
        self._in_scope -= declared
        with _writer_errors():
            element.__exit__(None, None, None)
        if not self._stack:
            self._close_writer()

    def _close_writer(self) -> None:
        context, self._context = self._context, None
        self._writer = None
        self._root_closed = True
        with _writer_errors():
            context.__exit__(None, None, None)


@contextmanager
def _writer_errors() -> Iterator[None]:
    """Re-raises sink and serializer failures as :class:`XmlIOError`."""
    try:
        yield
    except (OSError, ET.LxmlError) as e:
        raise XmlIOError(f"Failed to write XML output: {e}") from e
