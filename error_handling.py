"""
Error handling for the Tally parser and interpreter
Error classes plus plain dictionaries describing them for display
"""

from typing import Any, Dict, List, Optional


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_runtime_error(kind: str, message: str, **details: Any) -> Dict:
    """Create an immutable runtime error structure"""
    return {
        'kind': kind,
        'message': message,
        'details': dict(details),
    }


def format_runtime_error(error: Dict) -> str:
    """Format a runtime error structure as a single line"""
    return f"{error['kind']}: {error['message']}"


# ============================================================================
# ERROR CLASSES
# ============================================================================

class TallyParseError(Exception):
    """No prefix of the input matched the grammar.

    Failures carry no position: the parser only knows that nothing matched,
    plus whatever text was left over when a full parse was requested.
    """

    def __init__(self, message: str, remainder: Optional[str] = None):
        self.message = message
        self.remainder = remainder
        super().__init__(message)

    def __str__(self) -> str:
        if self.remainder:
            return f"Parse error: {self.message} (unprocessed: {self.remainder!r})"
        return f"Parse error: {self.message}"


class TallyRuntimeError(Exception):
    """Error raised while evaluating a single line"""
    kind = "RuntimeError"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict:
        return make_runtime_error(self.kind, self.message)


class UndefinedVariable(TallyRuntimeError):
    kind = "UndefinedVariable"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Undefined variable: {name}")

    def to_dict(self) -> Dict:
        return make_runtime_error(self.kind, self.message, name=self.name)


class UndefinedFunction(TallyRuntimeError):
    kind = "UndefinedFunction"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Undefined function: {name}")

    def to_dict(self) -> Dict:
        return make_runtime_error(self.kind, self.message, name=self.name)


class ArityMismatch(TallyRuntimeError):
    """Fewer arguments than declared parameters (extra arguments are ignored)"""
    kind = "ArityMismatch"

    def __init__(self, name: str, expected: int, got: int):
        self.name = name
        self.expected = expected
        self.got = got
        super().__init__(f"Function '{name}' expects {expected} argument(s), got {got}")

    def to_dict(self) -> Dict:
        return make_runtime_error(self.kind, self.message,
                                  name=self.name, expected=self.expected, got=self.got)


class RecursionDepthExceeded(TallyRuntimeError):
    kind = "RecursionDepthExceeded"

    def __init__(self, limit: Optional[int] = None):
        self.limit = limit
        message = "Maximum recursion depth exceeded"
        if limit is not None:
            message += f" (limit {limit})"
        super().__init__(message)

    def to_dict(self) -> Dict:
        return make_runtime_error(self.kind, self.message, limit=self.limit)


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def generate_suggestions(remainder: str) -> List[str]:
    """Generate hints from the text the parser could not consume"""
    suggestions = []
    stripped = remainder.strip()

    if not stripped:
        return suggestions

    if stripped[0] in "+-*/":
        suggestions.append("An operator must be followed by a number, variable, call or parenthesized expression")

    if stripped.count("(") != stripped.count(")"):
        suggestions.append("Check that parentheses are balanced")

    if stripped[0] == "=":
        suggestions.append("The left side of '=' must be a name or a function head like f(a, b)")

    if stripped[0].isdigit() and any(c.isalpha() for c in stripped.split()[0]):
        suggestions.append("Names must start with a letter")

    return suggestions


def format_parse_error(error: TallyParseError) -> str:
    """Format a parse error with hints derived from the unprocessed text"""
    error_msg = f"{error}\n"

    if error.remainder:
        suggestions = generate_suggestions(error.remainder)
        if suggestions:
            error_msg += "  Suggestions:\n"
            for suggestion in suggestions:
                error_msg += f"    - {suggestion}\n"

    return error_msg
