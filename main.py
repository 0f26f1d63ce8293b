"""
IMP Programming Language - Main Entry Point
Runs a program file or an interactive session, printing every evaluation step
"""

import sys
import argparse
from pathlib import Path
from typing import Optional, List
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from error_handling import IMPParseError, IMPRuntimeError, IMPStepLimitError
from interpreter import create_interpreter, display_store, IMPInterpreter


VERSION = "IMP v0.1.0 (Small-Step Interpreter)"

# Parsing and rewriting recurse once per level of nesting
RECURSION_LIMIT = 20000


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='IMP - a small imperative language with small-step semantics',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s                           # Interactive mode
  %(prog)s program.imp               # Run a program, printing every step
  %(prog)s --parse program.imp       # Show infix and sexp renderings
  %(prog)s --max-steps 1000 loop.imp # Give up after 1000 steps
  %(prog)s --debug program.imp       # Show the rule fired at each step
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='IMP program file to execute'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse only and show the infix and sexp renderings'
  )

  parser.add_argument(
      '--max-steps',
      type=int,
      default=None,
      metavar='N',
      help='Abort evaluation after N transitions (default: unlimited)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def report_runtime_error(e: IMPRuntimeError, interpreter: IMPInterpreter, source: str) -> None:
  """Print a fatal evaluation error"""
  kind = "Step limit exceeded" if isinstance(e, IMPStepLimitError) else "Runtime Error"
  print(f"\n{'='*70}")
  print(f"{kind} in '{source}'")
  print(f"{'='*70}")
  print(f"\nError: {e.message}")
  if e.redex:
    print(f"\nIn: {e.redex}")
  print(f"\nStore at error: {display_store(interpreter.store)}")
  print(f"\n{'='*70}\n")


def parse_file(script_path: str, debug: bool = False) -> None:
  """Parse an IMP program file and show both renderings"""
  interpreter = create_interpreter(debug)
  try:
    interpreter.parse_file(script_path)
  except IMPParseError as e:
    print(f"{e}")
    sys.exit(1)
  except IMPRuntimeError as e:
    report_runtime_error(e, interpreter, script_path)
    sys.exit(1)


def run_script_file(script_path: str, debug: bool = False, max_steps: Optional[int] = None) -> None:
  """Run an IMP program file with a fresh store"""
  interpreter = create_interpreter(debug, max_steps)
  try:
    interpreter.run_file(script_path)
  except IMPParseError as e:
    print(f"{e}")
    sys.exit(1)
  except IMPRuntimeError as e:
    report_runtime_error(e, interpreter, script_path)
    sys.exit(1)


def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.imp_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = [
      # Keywords
      "skip", "true", "false", "if", "then", "else", "while", "do",
      # REPL commands
      ":parse", ":store", ":help", ":quit"
  ]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit

  def save_history():
    try:
      readline.write_history_file(history_file)
    except OSError:
      pass

  atexit.register(save_history)


def show_help() -> None:
  print("REPL Commands:")
  print("  :parse <expr>     - Show infix and sexp renderings")
  print("  :store            - Show the current store")
  print("  :help             - Show this help")
  print("  :quit             - Exit REPL")
  print()
  print("Language:")
  print("  a := 1 + 2                       - Assignment")
  print("  !a >= 3                          - Dereference and comparison")
  print("  if !b then x := 1 else x := 2    - Conditional (else is required)")
  print("  while !i >= 0 do i := !i + -1    - Loop")
  print("  a := 1; b := !a                  - Sequence")


def run_interactive_mode(debug: bool = False, max_steps: Optional[int] = None) -> None:
  """Run IMP interactively; the store persists across lines"""
  print(f"{VERSION} - Interactive Mode")
  print("Type ':quit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  interpreter = create_interpreter(debug, max_steps)

  while True:
    try:
      code = input("IMP> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    if code.strip() == ":quit":
      break

    if not code.strip():
      continue

    if code.startswith(":parse "):
      try:
        interpreter.parse_source(code[7:])
      except IMPParseError as e:
        print(f"{e}")
      except IMPRuntimeError as e:
        print(f"Error: {e.message}")
      continue

    if code.strip() == ":store":
      print(display_store(interpreter.store))
      continue

    if code.strip() == ":help":
      show_help()
      continue

    try:
      interpreter.run_source(code)
    except IMPParseError as e:
      print(f"{e}")
    except IMPRuntimeError as e:
      # Evaluation errors end the session
      report_runtime_error(e, interpreter, "<input>")
      sys.exit(1)
    except KeyboardInterrupt:
      print("\nInterrupted")


def raise_recursion_limit() -> None:
  """Allow deeply nested programs before RecursionError is reported"""
  sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for IMP"""
  raise_recursion_limit()
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.script:
    if not Path(args.script).exists():
      print(f"Error: Program file '{args.script}' does not exist")
      sys.exit(1)

    if args.parse:
      parse_file(args.script, debug=args.debug)
    else:
      run_script_file(args.script, debug=args.debug, max_steps=args.max_steps)

  elif args.parse:
    arg_parser.error("--parse needs a program file")

  else:
    run_interactive_mode(debug=args.debug, max_steps=args.max_steps)


if __name__ == "__main__":
  main()
