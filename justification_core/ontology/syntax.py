"""
Functional-syntax reader and writer.

Only what the isolated worker hand-off needs: single terms, axioms and
`Ontology( ... )` documents. Several documents may follow each other in
one text, and line breaks between axioms are optional.
"""

import re
from typing import Iterable, List, Tuple

from ..errors import AxiomSyntaxError
from .axioms import AXIOM_TYPES, Axiom, Expression

ONTOLOGY_MARKER = "Ontology("

_TOKEN = re.compile(r"\s*(?:(\()|(\))|([^\s()]+))")


def tokenize(text: str) -> List[Tuple[str, int]]:
    tokens = []
    pos = 0
    end = len(text.rstrip())
    while pos < end:
        m = _TOKEN.match(text, pos)
        if m is None:
            raise AxiomSyntaxError("Unexpected character", pos)
        tok = m.group(1) or m.group(2) or m.group(3)
        tokens.append((tok, m.start(m.lastindex)))
        pos = m.end()
    return tokens


class _Reader:
    def __init__(self, text: str):
        self.tokens = tokenize(text)
        self.i = 0

    def at_end(self) -> bool:
        return self.i >= len(self.tokens)

    def peek(self) -> str:
        return self.tokens[self.i][0] if not self.at_end() else ""

    def next(self) -> str:
        if self.at_end():
            raise AxiomSyntaxError("Unexpected end of input")
        tok = self.tokens[self.i][0]
        self.i += 1
        return tok

    def offset(self) -> int:
        return self.tokens[self.i][1] if not self.at_end() else -1

    def term(self, axiom: bool = False) -> Expression:
        head = self.next()
        if head in ("(", ")"):
            raise AxiomSyntaxError(f"Expected a name, got {head!r}",
                                   self.tokens[self.i - 1][1])
        cls = Axiom if axiom and head in AXIOM_TYPES else Expression
        if self.peek() != "(":
            if axiom:
                raise AxiomSyntaxError(f"Expected axiom, got {head!r}",
                                       self.tokens[self.i - 1][1])
            return cls(head)
        self.next()
        args = []
        while self.peek() != ")":
            if self.at_end():
                raise AxiomSyntaxError(f"Unclosed {head}(")
            args.append(self.term())
        self.next()
        if axiom and cls is not Axiom:
            raise AxiomSyntaxError(f"Unknown axiom type {head!r}")
        return cls(head, tuple(args))


def parse_expression(text: str) -> Expression:
    reader = _Reader(text)
    expr = reader.term()
    if not reader.at_end():
        raise AxiomSyntaxError("Trailing input", reader.offset())
    return expr


def parse_axiom(text: str) -> Axiom:
    reader = _Reader(text)
    ax = reader.term(axiom=True)
    if not reader.at_end():
        raise AxiomSyntaxError("Trailing input", reader.offset())
    return ax


def parse_documents(text: str) -> List[frozenset]:
    """Read every `Ontology(...)` document in `text`, in order.

    Each document becomes one frozenset of axioms.
    """
    reader = _Reader(text)
    docs = []
    while not reader.at_end():
        if reader.next() != "Ontology" or reader.next() != "(":
            raise AxiomSyntaxError("Expected Ontology(",
                                   reader.tokens[reader.i - 1][1])
        axioms = set()
        while reader.peek() != ")":
            if reader.at_end():
                raise AxiomSyntaxError("Unclosed Ontology(")
            axioms.add(reader.term(axiom=True))
        reader.next()
        docs.append(frozenset(axioms))
    return docs


def parse_document(text: str) -> frozenset:
    docs = parse_documents(text)
    if len(docs) != 1:
        raise AxiomSyntaxError(f"Expected one document, found {len(docs)}")
    return docs[0]


def render_document(axioms: Iterable[Axiom]) -> str:
    """Render axioms as one document, sorted for a stable rendering."""
    lines = sorted(ax.render() for ax in axioms)
    return ONTOLOGY_MARKER + "\n" + "".join(line + "\n" for line in lines) + ")"


def read_document_file(path) -> frozenset:
    with open(path, "r", encoding="utf-8") as f:
        return parse_document(f.read())


def write_document_file(path, axioms: Iterable[Axiom]):
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_document(axioms))
        f.write("\n")
