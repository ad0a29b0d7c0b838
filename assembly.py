import logging
import re
from enum import Enum
from typing import Iterable
from typing import List
from typing import Optional
from typing import Tuple

from isa import Add
from isa import Command
from isa import Comp
from isa import Condition
from isa import END
from isa import IfJump
from isa import Jump
from isa import JumpDest
from isa import LoadToVariable
from isa import NEXT
from isa import Newline
from isa import PrintRegister
from isa import PrintText
from isa import Set
from isa import Sub
from isa import VarOrNum
from isa import Variable

LITERAL_BITS = 32
ADDRESS_BITS = 64

_UNSIGNED = re.compile(r'\+?[0-9]+')


class ParseErrorKind(Enum):
    IO = 'Io error'
    COMMAND_NAME = 'Invalid command name'
    STRING = 'Invalid string'
    VARIABLE = 'Invalid variable'
    VAR_OR_NUM = 'Invalid variable or number'
    SET_INVOCATION = 'Invalid set invocation'
    ADD_INVOCATION = 'Invalid add invocation'
    SUB_INVOCATION = 'Invalid sub invocation'
    IFJ_INVOCATION = 'Invalid ifj invocation'
    CONDITION = 'Invalid condition'
    COMPARISON = 'Invalid comparison'
    JUMP_DEST = 'Invalid jump destination'


class ParseError(RuntimeError):
    def __init__(self, kind: ParseErrorKind, detail: str = '', line: Optional[int] = None):
        self.kind = kind
        self.detail = detail
        self.line = line
        msg = kind.value
        if detail:
            msg = f'{msg}: {detail}'
        if line is not None:
            msg = f'Failed to parse a command at line {line}. {msg}'
        super().__init__(msg)

    def at_line(self, line: int) -> 'ParseError':
        return ParseError(self.kind, self.detail, line)


def strip_comment(string: str) -> str:
    return string.split('#', 1)[0]


def parse_unsigned(s: str, bits: int) -> int:
    """Base-10 unsigned integer that fits in `bits` bits, optional leading '+'."""
    if not _UNSIGNED.fullmatch(s):
        raise ValueError(f'Invalid unsigned integer: {s!r}')
    value = int(s)
    if value >= 2 ** bits:
        raise ValueError(f'Number too large: {s}')
    return value


def parse_variable(s: str) -> Variable:
    try:
        return Variable(s)
    except ValueError:
        raise ParseError(ParseErrorKind.VARIABLE, f'{s!r}, has to be: A, B, C or D')


def parse_var_or_num(s: str) -> VarOrNum:
    try:
        return parse_variable(s)
    except ParseError:
        pass

    try:
        return parse_unsigned(s, LITERAL_BITS)
    except ValueError:
        raise ParseError(ParseErrorKind.VAR_OR_NUM, f'{s!r} is neither a variable nor a number')


def parse_jump_dest(s: str) -> JumpDest:
    if s in ('NXT', 'NEXT'):
        return NEXT
    if s == 'END':
        return END

    try:
        line = parse_unsigned(s, ADDRESS_BITS)
    except ValueError as e:
        raise ParseError(ParseErrorKind.JUMP_DEST, str(e))
    if line == 0:
        raise ParseError(ParseErrorKind.JUMP_DEST, 'jump destination cannot be zero')
    return JumpDest.nth(line)


_COMPARISONS = {spelling: comp for comp in Comp for spelling in comp.value}


def parse_comp(s: str) -> Comp:
    try:
        return _COMPARISONS[s]
    except KeyError:
        raise ParseError(ParseErrorKind.COMPARISON, f'{s!r}')


def parse_condition(s: str) -> Condition:
    """format: <variable> <comp> <variable or number>"""
    parts = s.split(' ', 2)
    if len(parts) < 3:
        raise ParseError(ParseErrorKind.CONDITION, f'not enough segments in {s!r}')
    variable, comp, operand = parts
    return Condition(parse_variable(variable), parse_comp(comp), parse_var_or_num(operand))


def parse_text(s: str) -> str:
    """
    String literal in double quotes. Escapes: \\" and \\\\.
    Anything after the closing quote is ignored.
    """
    s = s.strip()
    if not s.startswith('"'):
        raise ParseError(ParseErrorKind.STRING, "the string isn't delimited with quotation marks")

    result = []
    escaped = False
    for ch in s[1:]:
        if escaped:
            if ch not in ('"', '\\'):
                raise ParseError(ParseErrorKind.STRING, f'invalid character escape sequence: "\\{ch}"')
            result.append(ch)
            escaped = False
        elif ch == '\\':
            escaped = True
        elif ch == '"':
            return ''.join(result)
        else:
            result.append(ch)

    raise ParseError(ParseErrorKind.STRING, "the string isn't delimited with quotation marks")


def _parse_assignment(rest: str, kind: ParseErrorKind) -> Tuple[Variable, VarOrNum]:
    if ' ' not in rest:
        raise ParseError(kind, f'expected <variable> <variable or number>, got {rest!r}')
    variable, operand = rest.split(' ', 1)
    return parse_variable(variable), parse_var_or_num(operand)


def _parse_if_jump(rest: str) -> IfJump:
    """
    format: IFJ <condition> <then> <else>
    split from the right, so only the condition may contain spaces
    """
    parts = rest.rsplit(' ', 2)
    parts.reverse()

    def segment(i: int) -> str:
        if i >= len(parts):
            raise ParseError(ParseErrorKind.IFJ_INVOCATION, f'expected <condition> <then> <else>, got {rest!r}')
        return parts[i]

    otherwise = parse_jump_dest(segment(0))
    then = parse_jump_dest(segment(1))
    condition = parse_condition(segment(2))
    return IfJump(condition, then, otherwise)


def parse_command(string: str) -> Command:
    """
    Parse one comment-free, stripped line.
    format: <mnemonic> [operands]
    example: SET A 5
    """
    if ' ' not in string:
        if string == 'NLN':
            return Newline()
        raise ParseError(ParseErrorKind.COMMAND_NAME, f'{string!r}')

    name, rest = string.split(' ', 1)

    if name == 'PVR':
        return PrintRegister(parse_variable(rest))
    elif name == 'PTX':
        return PrintText(parse_text(rest))
    elif name == 'LTV':
        return LoadToVariable(parse_variable(rest))
    elif name == 'SET':
        return Set(*_parse_assignment(rest, ParseErrorKind.SET_INVOCATION))
    elif name == 'ADD':
        return Add(*_parse_assignment(rest, ParseErrorKind.ADD_INVOCATION))
    elif name == 'SUB':
        return Sub(*_parse_assignment(rest, ParseErrorKind.SUB_INVOCATION))
    elif name in ('IFJ', 'IF'):
        return _parse_if_jump(rest)
    elif name == 'JMP':
        return Jump(parse_jump_dest(rest))

    raise ParseError(ParseErrorKind.COMMAND_NAME, f'{name!r}')


def parse(text: Iterable[str]) -> List[Command]:
    """One command per physical line; the first error stops parsing."""
    commands = []
    for number, string in enumerate(text, start=1):
        string = strip_comment(string.rstrip('\r\n')).strip()
        try:
            commands.append(parse_command(string))
        except ParseError as e:
            raise e.at_line(number) from e

    logging.debug('Parsed %d commands', len(commands))
    return commands


def parse_file(path: str) -> List[Command]:
    try:
        with open(path, encoding='utf-8', newline='\n') as f:
            text = f.readlines()
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(ParseErrorKind.IO, f'{path}: {e}')

    return parse(text)
