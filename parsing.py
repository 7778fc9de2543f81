"""
Tally Programming Language Parser
Grammar for expressions, declarations and programs built from the combinator engine
"""

from typing import NamedTuple, Optional

from combinators import (
    Node, Parser, ParseOutcome, WHITESPACE,
    character, regex, or_, then_skipping, skipping, some, as_, chain, forward, packrat,
)
from error_handling import TallyParseError


NUMBER_PATTERN = r'-?[0-9]+(?:\.[0-9]+)?'
VARIABLE_PATTERN = r'[a-zA-Z][a-zA-Z0-9]*'
ARGUMENT_DELIMITER_PATTERN = r',?'
WHITESPACE_PATTERN = r'[ \t]*'
LINE_DELIMITER_PATTERN = r'[\n;]*'

# Characters that may trail a complete parse without making it partial
BLANK_CHARACTERS = " \t\n;"


class ParseResult(NamedTuple):
    """Outcome of parsing a whole text: the tree, the unconsumed text, and a success flag"""
    ast: Optional[Node]
    remainder: str
    success: bool
    error: Optional[TallyParseError] = None


class TallyGrammar:
    """Tally grammar definition using parser combinators"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the layered Tally grammar"""

        # Forward declaration for the recursive expression rule
        expression = forward("Expression")

        # Terminals
        ws = regex(WHITESPACE, WHITESPACE_PATTERN)
        line_delimiter = regex(WHITESPACE, LINE_DELIMITER_PATTERN)
        argument_delimiter = regex("ArgumentDelimiter", ARGUMENT_DELIMITER_PATTERN)
        number = regex("Number", NUMBER_PATTERN)
        variable = regex("Variable", VARIABLE_PATTERN)

        # Function calls: f(a, b) or f(a b)
        argument = then_skipping("Argument", ws, expression, argument_delimiter)
        function_call = then_skipping(
            "FunctionCall", ws,
            variable,
            character('('),
            some("Arguments", argument),
            character(')'))

        # Order matters: parenthesized, then call-shaped names, then bare names, then numbers
        parenthesized = then_skipping("Unit", ws, character('('), expression, character(')'))
        unit = or_(
            parenthesized,
            skipping(ws, function_call),
            skipping(ws, variable),
            skipping(ws, number))

        # Operators are tagged so evaluation can branch on the tag alone
        add_op = or_(as_("OpAdd", character('+')), as_("OpMinus", character('-')))
        mult_op = or_(as_("OpMult", character('*')), as_("OpDiv", character('/')))

        # A lone operand comes back bare; Sum and Multiplication need an operator
        multiplication = chain(
            "Multiplication", ws,
            unit,
            then_skipping("Term", ws, mult_op, unit))

        sum_expr = chain(
            "Sum", ws,
            multiplication,
            then_skipping("Term", ws, add_op, multiplication))

        # Memoized so a failed alternative never re-parses the same nested expression
        self.packrat = packrat(as_("Expression", sum_expr))
        expression <<= self.packrat

        # Declarations
        variable_declaration = then_skipping(
            "VariableDeclaration", ws,
            variable,
            character('='),
            expression)

        parameter = then_skipping("Parameter", ws, variable, argument_delimiter)
        function_declaration = then_skipping(
            "FunctionDeclaration", ws,
            variable,
            character('('),
            some("Parameters", parameter),
            character(')'),
            character('='),
            expression)

        # Declarations are tried before bare expressions on every line
        line = then_skipping(
            "Line", ws,
            or_(variable_declaration, function_declaration, expression),
            line_delimiter)
        program = some("Lines", line)

        # Store the main parsers
        self.program = program
        self.line = line
        self.expression = expression
        self.variable_declaration = variable_declaration
        self.function_declaration = function_declaration
        self.function_call = function_call
        self.unit = unit
        self.multiplication = multiplication
        self.sum = sum_expr
        self.number = number
        self.variable = variable
        self.whitespace = ws

    def parse_with(self, parser: Parser, text: str, parse_all: bool = False) -> ParseResult:
        """Run one grammar rule over text and package the outcome"""
        self.packrat.reset()
        try:
            outcome: ParseOutcome = parser(text)
        except RecursionError:
            error = TallyParseError("input is nested too deeply to parse")
            return ParseResult(None, text, False, error)
        finally:
            self.packrat.reset()

        if not outcome.ok:
            return ParseResult(None, text, False, TallyParseError("no prefix of the input matched"))

        if parse_all and outcome.rest.strip(BLANK_CHARACTERS):
            error = TallyParseError("input was not fully consumed", outcome.rest)
            return ParseResult(None, text, False, error)

        if self.debug:
            lines = len(outcome.node.children) if outcome.node.type == "Lines" else 1
            print(f"Parsed {lines} line(s), unprocessed: {outcome.rest!r}")

        return ParseResult(outcome.node, outcome.rest, True)

    def parse_program(self, text: str, parse_all: bool = False) -> ParseResult:
        """Parse a complete Tally program"""
        return self.parse_with(self.program, text, parse_all)

    def parse_expression(self, text: str, parse_all: bool = False) -> ParseResult:
        """Parse a single Tally expression"""
        return self.parse_with(self.expression, text, parse_all)


class TallyParser:
    """Main Tally parser: grammar plus file and string entry points that raise on failure"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = TallyGrammar(debug)

    def parse_file(self, filepath: str) -> Node:
        """Parse a Tally source file"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise TallyParseError(f"File not found: {filepath}")
        except UnicodeDecodeError as e:
            raise TallyParseError(f"Cannot decode file {filepath}: {e}")
        return self.parse_string(content)

    def parse_string(self, text: str) -> Node:
        """Parse Tally source code from a string, requiring all of it to be consumed"""
        result = self.grammar.parse_program(text, parse_all=True)
        if not result.success:
            raise result.error
        return result.ast

    def parse(self, text: str, parse_all: bool = False) -> ParseResult:
        return self.grammar.parse_program(text, parse_all)

    def parse_expression(self, text: str, parse_all: bool = False) -> ParseResult:
        return self.grammar.parse_expression(text, parse_all)


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> TallyParser:
    """Create a Tally parser"""
    return TallyParser(debug=debug)


def create_debug_parser() -> TallyParser:
    """Create a Tally parser with debug enabled"""
    return TallyParser(debug=True)


_default_grammar: Optional[TallyGrammar] = None


def _grammar() -> TallyGrammar:
    global _default_grammar
    if _default_grammar is None:
        _default_grammar = TallyGrammar()
    return _default_grammar


def parse(text: str, parse_all: bool = False) -> ParseResult:
    """Parse a program; success means some prefix matched, the rest is reported as remainder"""
    return _grammar().parse_program(text, parse_all)


def parse_expression(text: str, parse_all: bool = False) -> ParseResult:
    """Parse a lone expression with the same leftover-text contract as parse()"""
    return _grammar().parse_expression(text, parse_all)

