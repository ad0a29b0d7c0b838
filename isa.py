from dataclasses import dataclass
from enum import Enum
from typing import Optional
from typing import Union


class Variable(Enum):
    A = 'A'
    B = 'B'
    C = 'C'
    D = 'D'


# literal operands are plain ints in [0, 2**32 - 1]
VarOrNum = Union[Variable, int]


class Comp(Enum):
    LT = ('<', 'LT')
    LE = ('<=', 'LE')
    EQ = ('=', 'EQ')
    NE = ('!=', 'NE')
    GT = ('>', 'GT')
    GE = ('>=', 'GE')

    @property
    def mnemonic(self) -> str:
        return self.value[1]


class JumpKind(Enum):
    NEXT = 'NXT'
    END = 'END'
    NTH = 'NTH'


@dataclass(frozen=True)
class JumpDest:
    """
    NEXT - fall through to the following line
    END - stop the program
    NTH - go to the 1-based source line `line`
    """
    kind: JumpKind
    line: Optional[int] = None

    @classmethod
    def nth(cls, line: int) -> 'JumpDest':
        return cls(JumpKind.NTH, line)


NEXT = JumpDest(JumpKind.NEXT)
END = JumpDest(JumpKind.END)


@dataclass(frozen=True)
class Condition:
    variable: Variable
    comp: Comp
    operand: VarOrNum


class Command:
    mnemonic: str = ''


@dataclass(frozen=True)
class PrintRegister(Command):
    mnemonic = 'PVR'
    variable: Variable


@dataclass(frozen=True)
class PrintText(Command):
    mnemonic = 'PTX'
    text: str


@dataclass(frozen=True)
class Newline(Command):
    mnemonic = 'NLN'


@dataclass(frozen=True)
class LoadToVariable(Command):
    mnemonic = 'LTV'
    variable: Variable


@dataclass(frozen=True)
class Set(Command):
    mnemonic = 'SET'
    variable: Variable
    operand: VarOrNum


@dataclass(frozen=True)
class Add(Command):
    mnemonic = 'ADD'
    variable: Variable
    operand: VarOrNum


@dataclass(frozen=True)
class Sub(Command):
    mnemonic = 'SUB'
    variable: Variable
    operand: VarOrNum


@dataclass(frozen=True)
class IfJump(Command):
    mnemonic = 'IFJ'
    condition: Condition
    then: JumpDest
    otherwise: JumpDest


@dataclass(frozen=True)
class Jump(Command):
    mnemonic = 'JMP'
    dest: JumpDest


def _format_operand(operand: VarOrNum) -> str:
    if isinstance(operand, Variable):
        return operand.value
    return str(operand)


def _format_dest(dest: JumpDest) -> str:
    if dest.kind == JumpKind.NTH:
        return str(dest.line)
    return dest.kind.value


def _format_text(text: str) -> str:
    return '"' + text.replace('\\', '\\\\').replace('"', '\\"') + '"'


def format_command(command: Command) -> str:
    """Render a command as a canonical source line (parses back to an equal command).

    Objects outside the nine command classes are rendered as a placeholder.
    """
    if isinstance(command, Newline):
        return command.mnemonic
    if isinstance(command, (PrintRegister, LoadToVariable)):
        args = [command.variable.value]
    elif isinstance(command, PrintText):
        args = [_format_text(command.text)]
    elif isinstance(command, (Set, Add, Sub)):
        args = [command.variable.value, _format_operand(command.operand)]
    elif isinstance(command, IfJump):
        cond = command.condition
        args = [
            cond.variable.value,
            cond.comp.mnemonic,
            _format_operand(cond.operand),
            _format_dest(command.then),
            _format_dest(command.otherwise),
        ]
    elif isinstance(command, Jump):
        args = [_format_dest(command.dest)]
    else:
        return f'<unknown {type(command).__name__}>'

    return ' '.join([command.mnemonic] + args)
