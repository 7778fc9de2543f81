"""
Tally parser combinator engine
Tagged syntax tree nodes plus small composable parsers over plain strings
"""

from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple
from dataclasses import dataclass

# Import pyparsing with error handling
try:
    from pyparsing import Literal, ParseException, ParserElement, Regex
except ImportError:
    raise ImportError("pyparsing library not found. Install with: pip install pyparsing")


CHAR = "Char"
WHITESPACE = "Whitespace"


@dataclass(frozen=True)
class Node:
    """Tagged tree node: either a leaf with a literal value or an internal node with children"""
    type: str
    value: Optional[str] = None
    children: Tuple['Node', ...] = ()

    def __post_init__(self):
        if self.value is not None and self.children:
            raise ValueError(f"Node {self.type} cannot carry both a value and children")
        # Accept any sequence of children but store a tuple
        object.__setattr__(self, 'children', tuple(self.children))

    @property
    def is_leaf(self) -> bool:
        return self.value is not None

    @property
    def is_whitespace(self) -> bool:
        return self.type == WHITESPACE

    def __str__(self) -> str:
        if self.is_whitespace:
            return ""
        if self.is_leaf:
            return self.value
        output = self.type + "["
        for i, child in enumerate(self.children):
            if i > 0 and child.type != CHAR:
                output += " "
            output += str(child)
        return output + "]"


class ParseOutcome(NamedTuple):
    """Result of running a parser: a node and the rest of the input, or a clean failure"""
    node: Optional[Node]
    rest: str
    ok: bool


Parser = Callable[[str], ParseOutcome]


def success(node: Node, rest: str) -> ParseOutcome:
    return ParseOutcome(node, rest, True)


def failure(text: str) -> ParseOutcome:
    """A failed outcome never consumes input"""
    return ParseOutcome(None, text, False)


# ============================================================================
# TERMINALS
# ============================================================================

def _anchored(element: ParserElement) -> ParserElement:
    # Match exactly at the current position: no implicit whitespace skipping, no tab expansion
    return element.leave_whitespace().parse_with_tabs()


def _match_terminal(element: ParserElement, text: str) -> Optional[str]:
    """Run a pyparsing terminal at position 0 and return the matched text, if any"""
    # try_parse skips parse_string's per-call setup (cache reset, streamlining, tab expansion)
    try:
        end = element.try_parse(text, 0)
    except (ParseException, IndexError):
        return None
    return text[:end]


def character(chr: str) -> Parser:
    """Match exactly one character equal to chr, producing a Char leaf"""
    if len(chr) != 1:
        raise ValueError(f"character() expects a single character, got {chr!r}")
    element = _anchored(Literal(chr))

    def parse(text: str) -> ParseOutcome:
        matched = _match_terminal(element, text)
        if matched is None:
            return failure(text)
        return success(Node(CHAR, matched), text[len(matched):])

    return parse


def regex(out_type: str, pattern: str) -> Parser:
    """Match pattern anchored at the start of the input, producing a leaf tagged out_type"""
    element = _anchored(Regex(pattern))

    def parse(text: str) -> ParseOutcome:
        matched = _match_terminal(element, text)
        if matched is None:
            return failure(text)
        return success(Node(out_type, matched), text[len(matched):])

    return parse


# ============================================================================
# COMBINATORS
# ============================================================================

def or_(*parsers: Parser) -> Parser:
    """Ordered choice: the first alternative that succeeds wins"""
    def parse(text: str) -> ParseOutcome:
        for parser in parsers:
            outcome = parser(text)
            if outcome.ok:
                return outcome
        return failure(text)

    return parse


def then(out_type: str, *parsers: Parser) -> Parser:
    """Run parsers in sequence; all must succeed or nothing is consumed"""
    def parse(text: str) -> ParseOutcome:
        rest = text
        children = []
        for parser in parsers:
            outcome = parser(rest)
            if not outcome.ok:
                return failure(text)
            children.append(outcome.node)
            rest = outcome.rest
        return success(Node(out_type, children=children), rest)

    return parse


def then_skipping(out_type: str, skip: Parser, *parsers: Parser) -> Parser:
    """Like then(), but optionally consumes skip before every element"""
    def parse(text: str) -> ParseOutcome:
        rest = text
        children = []
        for parser in parsers:
            skipped = skip(rest)
            if skipped.ok:
                rest = skipped.rest

            outcome = parser(rest)
            if not outcome.ok:
                return failure(text)
            children.append(outcome.node)
            rest = outcome.rest
        return success(Node(out_type, children=children), rest)

    return parse


def skipping(skip: Parser, parser: Parser) -> Parser:
    def parse(text: str) -> ParseOutcome:
        skipped = skip(text)
        outcome = parser(skipped.rest if skipped.ok else text)
        if not outcome.ok:
            return failure(text)
        return outcome

    return parse


def some(out_type: str, parser: Parser) -> Parser:
    """Zero or more repetitions; never fails"""
    return at_least(out_type, 0, parser)


def at_least(out_type: str, minimum: int, parser: Parser) -> Parser:
    """Repeat parser until it fails, requiring at least minimum matches"""
    def parse(text: str) -> ParseOutcome:
        rest = text
        children = []
        while True:
            outcome = parser(rest)
            # Stop on failure, and on empty matches that would loop forever
            if not outcome.ok or outcome.rest == rest:
                break
            children.append(outcome.node)
            rest = outcome.rest

        if len(children) < minimum:
            return failure(text)
        return success(Node(out_type, children=children), rest)

    return parse


def as_(out_type: str, parser: Parser) -> Parser:
    """Wrap a successful result as the single child of a node tagged out_type"""
    def parse(text: str) -> ParseOutcome:
        outcome = parser(text)
        if not outcome.ok:
            return failure(text)
        return success(Node(out_type, children=[outcome.node]), outcome.rest)

    return parse


def chain(out_type: str, skip: Parser, operand: Parser, term: Parser) -> Parser:
    """
    An operand followed by one or more terms, tagged out_type.

    Without any term the operand's own outcome is returned unchanged, so
    the operand is parsed once whether or not a continuation follows.
    """
    first = skipping(skip, operand)
    terms = at_least("Terms", 1, term)

    def parse(text: str) -> ParseOutcome:
        head = first(text)
        if not head.ok:
            return failure(text)

        skipped = skip(head.rest)
        tail = terms(skipped.rest if skipped.ok else head.rest)
        if not tail.ok:
            return head
        return success(Node(out_type, children=[head.node, tail.node]), tail.rest)

    return parse


class ForwardParser:
    """Late-bound parser for recursive grammars, bound with <<="""

    def __init__(self, name: str = "forward"):
        self.name = name
        self.parser: Optional[Parser] = None

    def __ilshift__(self, parser: Parser) -> 'ForwardParser':
        self.parser = parser
        return self

    def __call__(self, text: str) -> ParseOutcome:
        if self.parser is None:
            raise RuntimeError(f"Forward parser '{self.name}' used before being defined")
        return self.parser(text)

    def __repr__(self) -> str:
        return f"ForwardParser({self.name!r})"


class PackratParser:
    """Memoize a parser's outcome per input text, like pyparsing's packrat mode"""

    def __init__(self, parser: Parser):
        self.parser = parser
        self.cache: Dict[str, ParseOutcome] = {}

    def __call__(self, text: str) -> ParseOutcome:
        outcome = self.cache.get(text)
        if outcome is None:
            outcome = self.parser(text)
            self.cache[text] = outcome
        return outcome

    def reset(self) -> None:
        self.cache.clear()


def forward(name: str = "forward") -> ForwardParser:
    return ForwardParser(name)


def packrat(parser: Parser) -> PackratParser:
    return PackratParser(parser)


# ============================================================================
# TREE UTILITIES
# ============================================================================

def find_nodes_by_type(node: Node, node_type: str) -> List[Node]:
    """Find all nodes of a specific type, in pre-order"""
    result = []

    def search(current: Node):
        if current.type == node_type:
            result.append(current)
        for child in current.children:
            search(child)

    search(node)
    return result


def pretty_print_node(node: Node, indent: int = 0) -> str:
    """Pretty print a node tree for debugging, one node per line"""
    result = "  " * indent + node.type
    if node.is_leaf:
        result += f"({node.value!r})"
    result += "\n"

    for child in node.children:
        result += pretty_print_node(child, indent + 1)

    return result


def node_to_dict(node: Node) -> Dict[str, Any]:
    """Convert a node tree to plain dictionaries"""
    if node.is_leaf:
        return {"type": node.type, "value": node.value}
    return {
        "type": node.type,
        "children": [node_to_dict(child) for child in node.children],
    }
