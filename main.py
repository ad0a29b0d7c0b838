"""Command line runner: parse a source file and execute it on the machine."""

import argparse
import io
import logging
import sys
from typing import List
from typing import Optional

from assembly import ParseError
from assembly import parse_file
from machine import ExecutionError
from machine import Machine

LOGFILE = 'regasm.log'


def init_logging(logfile: str = LOGFILE, debug: bool = False) -> None:
    """
    Replace the root logger handlers.

    Without debug everything below CRITICAL is dropped and no file is created.
    With debug a per-step trace is written to `logfile`; stdout stays reserved
    for the program's own output.
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    if not debug:
        root.setLevel(logging.CRITICAL)
        root.addHandler(logging.NullHandler())
        return

    root.setLevel(logging.DEBUG)
    fh = logging.FileHandler(logfile, mode='w', encoding='utf-8')
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter('%(levelname)s %(name)s:%(filename)s:%(lineno)d %(message)s'))
    root.addHandler(fh)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        description='Run a four-register assembly program.',
        epilog='The program itself only takes the source path; --debug and --logfile '
               'control the trace log and never change how the program runs.',
    )
    ap.add_argument('source', help='path to the program source file')
    ap.add_argument('--debug', action='store_true', help='write a per-step trace to the log file')
    ap.add_argument('--logfile', default=LOGFILE, help='path to the debug log')
    args = ap.parse_args(argv)

    init_logging(args.logfile, debug=args.debug)

    # stdin lines end at \n only, like source lines
    if isinstance(sys.stdin, io.TextIOWrapper):
        sys.stdin.reconfigure(newline='\n')

    try:
        program = parse_file(args.source)
        Machine(program).run()
    except (ParseError, ExecutionError) as e:
        logging.debug('Stopped: %s', e)
        sys.stdout.flush()
        print(f'Error: {e}', file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
