"""
Quark Specification Language - Command Line Entry Point
Parse contract specifications and show the resulting structure
"""

import sys
import json
import argparse
from typing import List, Optional

from lexing import Scanner
from parsing import parse_string, parse_file, spec_to_dict, pretty_print_spec
from error_handling import SpecParseError
from quark import __version__


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='quark',
      description='Quark - parse debtor/creditor contract specifications',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s loan.quark             # Parse a spec file and pretty print it
  %(prog)s - < loan.quark         # Read the spec from stdin
  %(prog)s -e "spec Loan L to B ..."  # Parse inline text
  %(prog)s --json loan.quark      # Emit the parsed spec as JSON
  %(prog)s --tokens loan.quark    # Show the token stream
  %(prog)s --debug loan.quark     # Trace the parser
        """
  )

  parser.add_argument(
      'spec_file',
      nargs='?',
      help="Specification file to parse ('-' for stdin)"
  )

  parser.add_argument(
      '-e', '--expr',
      metavar='TEXT',
      help='Parse TEXT instead of a file'
  )

  parser.add_argument(
      '--json',
      action='store_true',
      help='Print the parsed specification as JSON'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Print the token stream instead of parsing'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable parser tracing'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=f'Quark v{__version__}'
  )

  return parser


def read_source(args: argparse.Namespace) -> str:
  """Return the source text selected on the command line"""
  if args.expr is not None:
    return args.expr
  if args.spec_file == '-':
    return sys.stdin.read()
  with open(args.spec_file, 'r', encoding='utf-8') as f:
    return f.read()


def show_tokens(text: str) -> None:
  """Print every token, including whitespace and EOF"""
  for token in Scanner(text).tokens():
    print(f"{token.offset:5d}  {token}")


def run(args: argparse.Namespace) -> int:
  """Execute the command described by parsed arguments"""
  source_name = '<expr>' if args.expr is not None else args.spec_file
  try:
    if args.tokens:
      show_tokens(read_source(args))
      return 0

    if args.expr is None and args.spec_file != '-':
      spec = parse_file(args.spec_file, debug=args.debug)
    else:
      spec = parse_string(read_source(args), source_name, debug=args.debug)

    if args.json:
      print(json.dumps(spec_to_dict(spec), indent=2))
    else:
      print(pretty_print_spec(spec), end='')
    return 0

  except FileNotFoundError:
    print(f"Error: Spec file '{source_name}' not found")
    print(f"  Hint: Check the file path and make sure the file exists")
    return 1
  except PermissionError:
    print(f"Error: Permission denied reading '{source_name}'")
    return 1
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{source_name}': {e}")
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding")
    return 1
  except SpecParseError as e:
    print(str(e).rstrip())
    return 1
  except Exception as e:
    print(f"Unexpected error while processing '{source_name}': {e}")
    if args.debug:
      import traceback
      traceback.print_exc()
    return 1


def main(argv: Optional[List[str]] = None) -> int:
  """Main entry point"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.spec_file is None and args.expr is None:
    arg_parser.print_help()
    return 1
  if args.spec_file is not None and args.expr is not None:
    arg_parser.error("give either a spec file or -e/--expr, not both")

  return run(args)


if __name__ == "__main__":
  sys.exit(main())
