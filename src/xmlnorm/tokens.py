"""Token types exchanged between the decoder, the normalizer and the encoder."""

from dataclasses import dataclass, field
from typing import NamedTuple, Tuple, Union

# Reserved namespace of the xmlns:* declaration attributes
XMLNS_NAMESPACE = "http://www.w3.org/2000/xmlns/"
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


class Name(NamedTuple):
    """Expanded name: namespace URI (empty when unqualified) and local name."""
    space: str
    local: str

    @classmethod
    def from_clark(cls, tag: str) -> "Name":
        """Splits an lxml ``{uri}local`` tag."""
        if tag.startswith("{"):
            space, _, local = tag[1:].partition("}")
            return cls(space, local)
        return cls("", tag)

    def to_clark(self) -> str:
        if self.space:
            return f"{{{self.space}}}{self.local}"
        return self.local


class Attr(NamedTuple):
    name: Name
    value: str

    def is_namespace_declaration(self) -> bool:
        return (
            self.name.local == "xmlns"
            or self.name.space in ("xmlns", XMLNS_NAMESPACE)
        )


@dataclass(frozen=True)
class StartElement:
    name: Name
    attrs: Tuple[Attr, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EndElement:
    name: Name


@dataclass(frozen=True)
class CharData:
    text: str


@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class Directive:
    """A ``<!...>`` markup declaration such as DOCTYPE."""
    text: str


@dataclass(frozen=True)
class ProcInst:
    target: str
    text: str = ""


Token = Union[StartElement, EndElement, CharData, Comment, Directive, ProcInst]
