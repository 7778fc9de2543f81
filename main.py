"""
Tally Programming Language - Main Entry Point
Numeric expressions, variables and user-defined functions
"""

import sys
import argparse
from pathlib import Path
from typing import List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from combinators import pretty_print_node
from parsing import create_parser, create_debug_parser
from interpreter import create_interpreter, create_debug_interpreter, execute, LineError
from error_handling import TallyParseError, format_parse_error
from utilities import format_line_results, format_bindings


VERSION = "Tally v0.1.0"
OUTPUT_BANNER = "---------------- OUTPUT -------------"
HISTORY_FILE = "~/.tally_history"


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='tally',
      description='Tally - numeric expressions, variables and functions',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.tally            # Run a Tally script
  echo "x=2;x*3" | %(prog)s        # Run a program read from stdin
  %(prog)s -i                      # Interactive mode
  %(prog)s --parse script.tally    # Show unprocessed text and the tree
  %(prog)s --tree script.tally     # Show the tree one node per line
  %(prog)s --debug script.tally    # Run with debug output
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help="Tally script file to execute ('-' reads stdin)"
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse only and show the rendered tree'
  )

  parser.add_argument(
      '--tree',
      action='store_true',
      help='Parse only and show the tree one node per line'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--recursion-limit',
      type=int,
      default=None,
      metavar='N',
      help='Python recursion limit; bounds nesting and function call depth'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def read_source(script: Optional[str]) -> str:
  """Read program text from a file, or from stdin for '-' or no script"""
  if script is None or script == '-':
    return sys.stdin.read()
  with open(script, 'r', encoding='utf-8') as f:
    return f.read()


def show_parse(source: str, tree: bool = False, debug: bool = False) -> None:
  """Parse source and show the unprocessed text and the tree"""
  parser = create_debug_parser() if debug else create_parser()
  result = parser.parse(source)

  if not result.success:
    print("Parser Failed")
    print(format_parse_error(result.error), end="")
    sys.exit(1)

  print("Unprocessed:", "\"" + result.remainder + "\"")
  if tree:
    print(pretty_print_node(result.ast), end="")
  else:
    print("Ast:", result.ast)


def run_source(source: str, debug: bool = False) -> None:
  """Parse and run a whole program, printing one line per result"""
  parser = create_debug_parser() if debug else create_parser()
  result = parser.parse(source)

  if not result.success:
    print("Parser Failed")
    print(format_parse_error(result.error), end="")
    sys.exit(1)

  print("Unprocessed:", "\"" + result.remainder + "\"")
  print("Ast:", result.ast)
  print(OUTPUT_BANNER)

  results = execute(result.ast, debug=debug)
  if results:
    print(format_line_results(results))

  if any(isinstance(line_result, LineError) for line_result in results):
    sys.exit(1)


def run_script(script: Optional[str], parse_only: bool = False, tree: bool = False,
               debug: bool = False) -> None:
  """Read a script (or stdin) and parse or run it"""
  name = script if script not in (None, '-') else "<stdin>"
  try:
    source = read_source(script)
  except FileNotFoundError:
    print(f"Error: Script file '{name}' not found")
    print(f"  Hint: Check the file path and make sure the file exists")
    sys.exit(1)
  except PermissionError:
    print(f"Error: Permission denied reading '{name}'")
    print(f"  Hint: Make sure you have read permissions for this file")
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{name}': {e}")
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding")
    sys.exit(1)

  if debug:
    print(f"Read {len(source)} characters from {name}")

  if parse_only or tree:
    show_parse(source, tree=tree, debug=debug)
  else:
    run_source(source, debug=debug)


def setup_readline() -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser(HISTORY_FILE)
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First run, no history yet

  readline.set_history_length(1000)

  completions = [":parse", ":tree", ":env", ":reset", ":help", "exit"]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def show_help() -> None:
  print("REPL Commands:")
  print("  :parse <text>     - Show the rendered tree")
  print("  :tree <text>      - Show the tree one node per line")
  print("  :env              - Show current variables and functions")
  print("  :reset            - Forget all variables and functions")
  print("  :help             - Show this help")
  print("  exit              - Exit REPL")
  print()
  print("Language features:")
  print("  x = 5                     - Variable declaration")
  print("  double(n) = n * 2         - Function declaration")
  print("  double(x) + 1             - Expression")
  print("  a = 1; b = a + 1          - Several lines at once")


def run_interactive_mode(debug: bool = False) -> None:
  """Run Tally in interactive mode with one environment for the session"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_debug_parser() if debug else create_parser()
  interpreter = create_debug_interpreter() if debug else create_interpreter()

  while True:
    try:
      code = input("tally> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    stripped = code.strip()
    if stripped in ("exit", "exit."):
      break
    if not stripped:
      continue

    if stripped.startswith(":parse ") or stripped.startswith(":tree "):
      command, text = stripped.split(" ", 1)
      result = parser.parse(text)
      if result.success:
        if command == ":tree":
          print(pretty_print_node(result.ast), end="")
        else:
          print(result.ast)
        if result.remainder:
          print(f"Unprocessed: \"{result.remainder}\"")
      else:
        print(format_parse_error(result.error), end="")
      continue

    if stripped == ":env":
      bindings = format_bindings(interpreter.variables, interpreter.functions)
      print("Current environment:")
      if bindings:
        for line in bindings:
          print(f"  {line}")
      else:
        print("  (no user-defined bindings)")
      continue

    if stripped == ":reset":
      interpreter.reset()
      print("Environment cleared")
      continue

    if stripped == ":help":
      show_help()
      continue

    try:
      results = interpreter.run(code)
      if results:
        print(format_line_results(results))
    except TallyParseError as e:
      print(format_parse_error(e), end="")


def show_language_info() -> None:
  """Show Tally language information"""
  print("Tally Programming Language")
  print("=" * 50)
  print("A small expression language with:")
  print("• Floating point arithmetic with + - * / and parentheses")
  print("• Variables: x = 2 * 3")
  print("• Functions: f(a, b) = a + b * 2")
  print()


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for Tally"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.recursion_limit is not None:
    if args.recursion_limit < 100:
      arg_parser.error("--recursion-limit must be at least 100")
    sys.setrecursionlimit(args.recursion_limit)

  if args.interactive:
    run_interactive_mode(debug=args.debug)
    return

  if args.script:
    if args.script != '-' and not Path(args.script).exists():
      print(f"Error: Script file '{args.script}' does not exist")
      sys.exit(1)
    run_script(args.script, parse_only=args.parse, tree=args.tree, debug=args.debug)
    return

  if not sys.stdin.isatty():
    # Program piped in, as in: echo "1+2" | tally
    run_script(None, parse_only=args.parse, tree=args.tree, debug=args.debug)
    return

  # No script and an interactive terminal - show info and start interactive mode
  show_language_info()
  print("Starting interactive mode...")
  print("Use 'tally --help' for command line options")
  print()
  run_interactive_mode(debug=args.debug)


if __name__ == "__main__":
  main()
