import io

import pytest

from xmlnorm.encoder import PrefixAllocator, TokenEncoder
from xmlnorm.tokens import (
    XML_NAMESPACE,
    Attr,
    CharData,
    Comment,
    Directive,
    EndElement,
    Name,
    ProcInst,
    StartElement,
)


@pytest.mark.parametrize(
    "uri, expected",
    [
        ("space", "space"),
        ("http://example.com/ns/", "ns"),
        ("http://www.ech.ch/xmlns/eCH-0196/2", "_"),
        ("urn:isbn:0451450523", "_"),
        ("http://example.com/XMLSchema", "_XMLSchema"),
        ("http://example.com/", "example.com"),
        (XML_NAMESPACE, "xml"),
    ],
)
def test_prefix_derived_from_uri(uri, expected):
    assert PrefixAllocator().prefix_for(uri) == expected


def test_prefix_collisions_get_numbered_suffixes():
    prefixes = PrefixAllocator()
    assert prefixes.prefix_for("http://one/x") == "x"
    assert prefixes.prefix_for("http://two/x") == "x_1"
    assert prefixes.prefix_for("http://three/x") == "x_2"
    assert prefixes.prefix_for("urn:a") == "_"
    assert prefixes.prefix_for("urn:b") == "__3"
    # Assignments are stable for the whole document
    assert prefixes.prefix_for("http://one/x") == "x"
    assert prefixes.prefix_for("http://two/x") == "x_1"


def test_prefix_assignment_follows_first_use():
    first, second = PrefixAllocator(), PrefixAllocator()
    first.prefix_for("http://one/x")
    second.prefix_for("http://two/x")
    assert first.prefix_for("http://two/x") == "x_1"
    assert second.prefix_for("http://one/x") == "x_1"


def encode(tokens):
    sink = io.BytesIO()
    with TokenEncoder(sink) as encoder:
        for token in tokens:
            encoder.encode(token)
        encoder.flush()
    return sink.getvalue().decode("utf-8")


def test_colliding_namespaces_are_declared_with_distinct_prefixes():
    root = Name("", "root")
    output = encode([
        StartElement(root, (Attr(Name("http://one/x", "p"), "1"), Attr(Name("http://two/x", "p"), "2"))),
        EndElement(root),
    ])
    assert output == '<root xmlns:x="http://one/x" xmlns:x_1="http://two/x" x:p="1" x_1:p="2"></root>'


def test_namespace_is_redeclared_in_sibling_scope():
    root, a, b = Name("", "root"), Name("urn:one/a", "a"), Name("urn:one/a", "b")
    output = encode([
        StartElement(root),
        StartElement(a),
        EndElement(a),
        StartElement(b),
        EndElement(b),
        EndElement(root),
    ])
    assert output == '<root><a:a xmlns:a="urn:one/a"></a:a><a:b xmlns:a="urn:one/a"></a:b></root>'


def test_comments_and_whitespace_outside_document_element_are_kept():
    root = Name("", "root")
    output = encode([
        Comment("prolog"),
        CharData("\n"),
        StartElement(root),
        CharData("x"),
        Comment(" inner "),
        EndElement(root),
        CharData("\n"),
        Comment("epilog"),
    ])
    assert output == "<!--prolog-->\n<root>x<!-- inner --></root>\n<!--epilog-->"


def test_text_outside_document_element_is_rejected():
    with TokenEncoder(io.BytesIO()) as encoder:
        with pytest.raises(ValueError):
            encoder.encode(CharData("x"))


def test_second_document_element_is_rejected():
    root = Name("", "root")
    with TokenEncoder(io.BytesIO()) as encoder:
        encoder.encode(StartElement(root))
        encoder.encode(EndElement(root))
        with pytest.raises(ValueError):
            encoder.encode(StartElement(root))


def test_xml_namespace_is_never_declared():
    root = Name("", "root")
    output = encode([
        StartElement(root, (Attr(Name(XML_NAMESPACE, "lang"), "en"), Attr(Name("urn:x", "a"), "1"))),
        EndElement(root),
    ])
    assert output == '<root xmlns:_="urn:x" xml:lang="en" _:a="1"></root>'


@pytest.mark.parametrize("token", [Directive("DOCTYPE foo"), ProcInst("foo")])
def test_directives_and_processing_instructions_are_rejected(token):
    with TokenEncoder(io.BytesIO()) as encoder:
        with pytest.raises(ValueError):
            encoder.encode(token)


def test_end_element_without_start_is_rejected():
    with TokenEncoder(io.BytesIO()) as encoder:
        with pytest.raises(ValueError):
            encoder.encode(EndElement(Name("", "root")))


def test_encode_outside_context_is_rejected():
    with pytest.raises(RuntimeError):
        TokenEncoder(io.BytesIO()).encode(CharData("x"))
