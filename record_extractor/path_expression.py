"""
Path expressions: the constrained XPath-like selector grammar used by scrapers.

A path expression is parsed once into segments (element name or parent step,
optional following-sibling axis, filters) plus an optional terminating
accessor (@attr, text(), node()). It can then be rendered into:

  render()              jsoup-style CSS, the canonical query string scrapers compare against
  to_soupsieve()        the CSS dialect understood by soupsieve / BeautifulSoup.select()
  to_soupsieve_chain()  the same, cut where the expression climbs to a parent

Grammar handled by the parser below:

  path       := ("//" | "/")? step (separator step)*
  separator  := "/" | ">" | "~"
  step       := accessor | ".." | segment     (an accessor must be the last step)
  segment    := ("following-sibling::")? (name | "*") filter*
  accessor   := "@" name | "text()" | "node()"
  filter     := "[" "@" name (= 'value')? "]"
              | "[" "contains(" (@name | text()) "," 'value' ")" "]"
              | "[" digits "]"
              | "[" name (("=" | "*=") value)? "]"
              | ":matchesOwn(" value ")" | ":eq(" digits ")"

">", "~" and the last two filter forms are what render() produces, so a
rendered expression parses back to the same segments.

A full scraper selector may chain several expressions with "//" in between;
split_descendants() cuts such a selector into one expression per step.
"""

from typing import Optional

import soupsieve
from pydantic import BaseModel, ConfigDict

from .exceptions import InvalidExpressionError

SIBLING_AXIS = "following-sibling::"
PARENT_STEP = ".."
TEXT_ACCESSOR = "text()"
NODE_ACCESSOR = "node()"
CONTAINS = "contains("
MATCHES_OWN = ":matchesOwn("
EQ = ":eq("

# Filter kinds
ATTRIBUTE_EQUALS = "attribute_equals"       # [@attr='value']
ATTRIBUTE_CONTAINS = "attribute_contains"   # [contains(@attr, 'value')]
TEXT_CONTAINS = "text_contains"             # [contains(text(), 'value')]
ATTRIBUTE_EXISTS = "attribute_exists"       # [@attr]
INDEX = "index"                             # [n], zero-based among element siblings

QUOTES = ("'", '"')
IDENTIFIER_EXTRA_CHARS = "_-."


class PathFilter(BaseModel):
    """One bracketed predicate on a segment."""
    model_config = ConfigDict(frozen=True)

    kind: str
    attribute: str = ""
    value: str = ""

    def render(self) -> str:
        if self.kind == ATTRIBUTE_EQUALS:
            return f"[{self.attribute}={self.value}]"
        if self.kind == ATTRIBUTE_CONTAINS:
            return f"[{self.attribute}*={self.value}]"
        if self.kind == TEXT_CONTAINS:
            return f":matchesOwn({self.value})"
        if self.kind == INDEX:
            return f":eq({self.value})"
        return f"[{self.attribute}]"

    def to_soupsieve(self) -> str:
        attribute = soupsieve.escape(self.attribute) if self.attribute else ""
        value = _css_string(self.value)
        if self.kind == ATTRIBUTE_EQUALS:
            return f"[{attribute}={value}]"
        if self.kind == ATTRIBUTE_CONTAINS:
            return f"[{attribute}*={value}]"
        if self.kind == TEXT_CONTAINS:
            return f":-soup-contains-own({value})"
        if self.kind == INDEX:
            # nth-child counts from one
            return f":nth-child({int(self.value) + 1})"
        return f"[{attribute}]"


class PathSegment(BaseModel):
    """An element step: name or wildcard, its filters and the axis leading to it."""
    model_config = ConfigDict(frozen=True)

    name: str
    filters: tuple[PathFilter, ...] = ()
    sibling: bool = False

    @property
    def is_parent(self) -> bool:
        return self.name == PARENT_STEP

    def render(self) -> str:
        return self.name + "".join(f.render() for f in self.filters)

    def to_soupsieve(self) -> str:
        name = self.name if self.name == "*" else soupsieve.escape(self.name)
        return name + "".join(f.to_soupsieve() for f in self.filters)


def _css_string(value: str) -> str:
    """Quote a filter value as a CSS string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\a ")
    return f'"{escaped}"'


def _join(segments, tokens) -> str:
    rendered = ""
    for segment, token in zip(segments, tokens):
        if not rendered:
            rendered = token
        elif segment.sibling:
            rendered += f" ~ {token}"
        else:
            rendered += f" > {token}"
    return rendered


class _Parser:
    """Recursive-descent parser over a single path expression."""

    def __init__(self, path: str):
        self.path = path
        self.text = path.strip()
        self.pos = 0

    # --- scanning helpers ---

    def _fail(self, reason: str):
        raise InvalidExpressionError(
            f"Invalid path expression [{self.path}]: {reason} at position {self.pos}.",
            expression=self.path,
            details={"position": self.pos}
        )

    def _at_end(self) -> bool:
        return self.pos >= len(self.text)

    def _peek(self) -> str:
        return "" if self._at_end() else self.text[self.pos]

    def _lookahead(self, literal: str) -> bool:
        return self.text.startswith(literal, self.pos)

    def _expect(self, literal: str):
        if not self._lookahead(literal):
            found = self._peek() or "end of expression"
            self._fail(f"expected '{literal}' but found '{found}'")
        self.pos += len(literal)

    def _skip_whitespace(self):
        while not self._at_end() and self.text[self.pos].isspace():
            self.pos += 1

    def _pseudo_ahead(self) -> bool:
        return self._lookahead(MATCHES_OWN) or self._lookahead(EQ)

    def _identifier(self) -> str:
        start = self.pos
        while not self._at_end():
            char = self.text[self.pos]
            if char.isalnum() or char in IDENTIFIER_EXTRA_CHARS:
                self.pos += 1
            # a single colon is a namespace prefix (dc:title), "::" is an axis
            elif (char == ":" and self.pos > start
                  and not self._lookahead("::") and not self._pseudo_ahead()):
                self.pos += 1
            else:
                break
        if self.pos == start:
            self._fail("expected a name")
        return self.text[start:self.pos]

    def _digits(self) -> str:
        start = self.pos
        while self._peek().isdigit():
            self.pos += 1
        if self.pos == start:
            self._fail("expected an index")
        return self.text[start:self.pos]

    def _string(self) -> str:
        quote = self._peek()
        if quote not in QUOTES:
            self._fail("expected a quoted value")
        end = self.text.find(quote, self.pos + 1)
        if end == -1:
            self._fail("unterminated string")
        value = self.text[self.pos + 1:end]
        self.pos = end + 1
        return value

    def _bare_value(self, opening: str, closing: str) -> str:
        """Unquoted value of the rendered form, up to the unbalanced closing character."""
        if self._peek() in QUOTES:
            return self._string()
        start = self.pos
        depth = 0
        while not self._at_end():
            char = self.text[self.pos]
            if char == opening:
                depth += 1
            elif char == closing:
                if depth == 0:
                    return self.text[start:self.pos]
                depth -= 1
            self.pos += 1
        self._fail(f"expected '{closing}'")

    # --- grammar ---

    def _accessor_ahead(self) -> bool:
        return self._peek() == "@" or self._lookahead(TEXT_ACCESSOR) or self._lookahead(NODE_ACCESSOR)

    def _accessor(self) -> str:
        if self._peek() == "@":
            self.pos += 1
            return "@" + self._identifier()
        for accessor in (TEXT_ACCESSOR, NODE_ACCESSOR):
            if self._lookahead(accessor):
                self.pos += len(accessor)
                return accessor
        self._fail("expected an accessor")

    def _filter(self) -> PathFilter:
        if self._lookahead(MATCHES_OWN):
            self.pos += len(MATCHES_OWN)
            result = PathFilter(kind=TEXT_CONTAINS, value=self._bare_value("(", ")"))
            self._expect(")")
            return result
        if self._lookahead(EQ):
            self.pos += len(EQ)
            result = PathFilter(kind=INDEX, value=self._digits())
            self._expect(")")
            return result

        self._expect("[")
        self._skip_whitespace()

        if self._peek() == "@":
            self.pos += 1
            attribute = self._identifier()
            self._skip_whitespace()
            if self._peek() == "=":
                self.pos += 1
                self._skip_whitespace()
                result = PathFilter(kind=ATTRIBUTE_EQUALS, attribute=attribute, value=self._string())
            else:
                result = PathFilter(kind=ATTRIBUTE_EXISTS, attribute=attribute)
        elif self._lookahead(CONTAINS):
            self.pos += len(CONTAINS)
            self._skip_whitespace()
            if self._peek() == "@":
                self.pos += 1
                kind, attribute = ATTRIBUTE_CONTAINS, self._identifier()
            elif self._lookahead(TEXT_ACCESSOR):
                self.pos += len(TEXT_ACCESSOR)
                kind, attribute = TEXT_CONTAINS, ""
            else:
                self._fail("contains() expects @attribute or text() as first argument")
            self._skip_whitespace()
            self._expect(",")
            self._skip_whitespace()
            value = self._string()
            self._skip_whitespace()
            self._expect(")")
            result = PathFilter(kind=kind, attribute=attribute, value=value)
        elif self._peek().isdigit():
            result = PathFilter(kind=INDEX, value=self._digits())
        else:
            # rendered form: [attr], [attr=value], [attr*=value]
            attribute = self._identifier()
            if self._lookahead("*="):
                self.pos += 2
                result = PathFilter(kind=ATTRIBUTE_CONTAINS, attribute=attribute, value=self._bare_value("[", "]"))
            elif self._peek() == "=":
                self.pos += 1
                result = PathFilter(kind=ATTRIBUTE_EQUALS, attribute=attribute, value=self._bare_value("[", "]"))
            else:
                result = PathFilter(kind=ATTRIBUTE_EXISTS, attribute=attribute)

        self._skip_whitespace()
        self._expect("]")
        return result

    def _segment(self, previous: Optional[PathSegment], sibling: bool) -> PathSegment:
        if self._lookahead(SIBLING_AXIS):
            if sibling:
                self._fail("'~' and following-sibling:: on the same step")
            self.pos += len(SIBLING_AXIS)
            sibling = True

        if sibling:
            if previous is None:
                self._fail("following-sibling:: needs a preceding element")
            if previous.is_parent:
                self._fail(f"following-sibling:: cannot follow '{PARENT_STEP}'")

        if self._lookahead(PARENT_STEP):
            if previous is None:
                self._fail(f"'{PARENT_STEP}' needs a preceding element")
            if sibling:
                self._fail(f"following-sibling:: cannot select '{PARENT_STEP}'")
            self.pos += len(PARENT_STEP)
            return PathSegment(name=PARENT_STEP)

        if self._peek() == "*":
            self.pos += 1
            name = "*"
        else:
            name = self._identifier()

        filters = []
        while self._peek() == "[" or self._pseudo_ahead():
            filters.append(self._filter())

        return PathSegment(name=name, filters=tuple(filters), sibling=sibling)

    def _separator(self) -> bool:
        """Consume the separator between two steps, True if it selects following siblings."""
        self._skip_whitespace()
        if self._peek() in (">", "~"):
            sibling = self._peek() == "~"
            self.pos += 1
            self._skip_whitespace()
            return sibling
        self._expect("/")
        if self._peek() == "/":
            self._fail("descendant separator '//' inside a single expression, use split_descendants()")
        return False

    def parse(self) -> tuple[tuple[PathSegment, ...], str]:
        if not self.text:
            self._fail("expression is empty")

        # "//", "/" and no prefix all mean a descendant search from the context
        if self._lookahead("//"):
            self.pos += 2
        elif self._lookahead("/"):
            self.pos += 1

        segments = []
        accessor = ""
        sibling = False

        while True:
            if self._at_end():
                self._fail("expected an element name")

            if self._accessor_ahead():
                if sibling:
                    self._fail("'~' must be followed by an element")
                accessor = self._accessor()
                if not self._at_end():
                    self._fail(f"accessor '{accessor}' must be the last step")
                break

            segments.append(self._segment(segments[-1] if segments else None, sibling))

            if self._at_end():
                break
            sibling = self._separator()

        return tuple(segments), accessor


class PathExpression:
    """
    One parsed path expression.

    Immutable after construction; rendering is a pure function of the
    parsed segments.
    """

    def __init__(self, path: str):
        self.path = path
        self.segments, self.accessor = _Parser(path).parse()

    @classmethod
    def parse(cls, path: str) -> "PathExpression":
        return cls(path)

    @property
    def terminating_child(self) -> str:
        """Accessor following at least one segment, empty string if there is none."""
        return self.accessor if self.segments else ""

    def has_terminating_child(self) -> bool:
        return bool(self.segments) and bool(self.accessor)

    def is_terminating_child(self) -> bool:
        """True only if the whole expression is nothing but an accessor."""
        return not self.segments and bool(self.accessor)

    def render(self) -> str:
        """Render as jsoup-style CSS. The terminating accessor is not part of it."""
        if self.is_terminating_child():
            return self.accessor
        return _join(self.segments, (segment.render() for segment in self.segments))

    def to_soupsieve_chain(self) -> list[str]:
        """
        Render as soupsieve selectors, cut at every parent step.

        Each ".." becomes PARENT_STEP in the chain. A selector after it is
        anchored with ":scope >" so it only matches children of the parent.
        """
        if self.is_terminating_child():
            raise InvalidExpressionError(
                f"Path expression [{self.path}] selects no elements.",
                expression=self.path
            )

        chain = []
        run = []
        for segment in self.segments:
            if segment.is_parent:
                if run:
                    chain.append(self._soupsieve_run(run, anchored=bool(chain)))
                    run = []
                chain.append(PARENT_STEP)
            else:
                run.append(segment)
        if run:
            chain.append(self._soupsieve_run(run, anchored=bool(chain)))

        return chain

    @staticmethod
    def _soupsieve_run(segments: list[PathSegment], anchored: bool) -> str:
        css = _join(segments, (segment.to_soupsieve() for segment in segments))
        return f":scope > {css}" if anchored else css

    def to_soupsieve(self) -> str:
        """Render as a single selector for BeautifulSoup.select()."""
        chain = self.to_soupsieve_chain()
        if len(chain) > 1:
            raise InvalidExpressionError(
                f"Path expression [{self.path}] climbs to a parent, use to_soupsieve_chain().",
                expression=self.path
            )
        return chain[0]

    def __eq__(self, other) -> bool:
        if not isinstance(other, PathExpression):
            return NotImplemented
        return self.segments == other.segments and self.accessor == other.accessor

    def __hash__(self) -> int:
        return hash((self.segments, self.accessor))

    def __repr__(self) -> str:
        return f"PathExpression({self.path!r})"

    def __str__(self) -> str:
        return self.render()


def split_descendants(selector: str) -> list[PathExpression]:
    """
    Split a full selector on "//" into one PathExpression per descendant step.

    "//tr[@class='type']//th/following-sibling::*/text()" becomes
    [PathExpression("tr[@class='type']"), PathExpression("th/following-sibling::*/text()")].
    Slashes inside quoted filter values don't split.

    Raises:
        InvalidExpressionError: If any step is malformed or an accessor appears
            anywhere but the last step.
    """
    text = selector.strip()
    if text.startswith("//"):
        text = text[2:]
    elif text.startswith("/"):
        text = text[1:]

    chunks = []
    current = []
    quote: Optional[str] = None
    index = 0

    while index < len(text):
        char = text[index]
        if quote:
            if char == quote:
                quote = None
        elif char in QUOTES:
            quote = char
        elif text.startswith("//", index):
            chunks.append("".join(current))
            current = []
            index += 2
            continue
        current.append(char)
        index += 1

    chunks.append("".join(current))

    if any(not chunk.strip() for chunk in chunks):
        raise InvalidExpressionError(
            f"Invalid selector [{selector}]: empty step.",
            expression=selector
        )

    expressions = [PathExpression(chunk) for chunk in chunks]

    for expression in expressions[:-1]:
        if expression.accessor:
            raise InvalidExpressionError(
                f"Invalid selector [{selector}]: accessor '{expression.accessor}' must be the last step.",
                expression=selector
            )

    return expressions
