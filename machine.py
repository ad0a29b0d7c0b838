import logging
import operator
from enum import Enum
from typing import Optional
from typing import Sequence

from assembly import ADDRESS_BITS
from assembly import parse_unsigned
from device import ConsoleInputDevice
from device import ConsoleOutputDevice
from isa import Add
from isa import Command
from isa import Comp
from isa import Condition
from isa import IfJump
from isa import Jump
from isa import JumpDest
from isa import JumpKind
from isa import LoadToVariable
from isa import Newline
from isa import PrintRegister
from isa import PrintText
from isa import Set
from isa import Sub
from isa import VarOrNum
from isa import Variable
from isa import format_command
from misc import Device
from misc import Number
from misc import Register


class ExecutionErrorKind(Enum):
    IO = 'Io error'
    INPUT = 'Failed to parse a number'


class ExecutionError(RuntimeError):
    def __init__(self, kind: ExecutionErrorKind, detail: str = ''):
        self.kind = kind
        self.detail = detail
        super().__init__(f'{kind.value}: {detail}' if detail else kind.value)


class InstructionError(RuntimeError):
    def __init__(self, instruction: Command, msg: str):
        super().__init__(f'Error in instruction {instruction!r}: {msg}')


class HaltedError(RuntimeError):
    pass


_COMPARATORS = {
    Comp.LT: operator.lt,
    Comp.LE: operator.le,
    Comp.EQ: operator.eq,
    Comp.NE: operator.ne,
    Comp.GT: operator.gt,
    Comp.GE: operator.ge,
}


class State:
    """Registers A-D, signed and zero on start."""

    def __init__(self, bit_depth: int):
        self.a: Register = Register(bit_depth)
        self.b: Register = Register(bit_depth)
        self.c: Register = Register(bit_depth)
        self.d: Register = Register(bit_depth)

    def register(self, variable: Variable) -> Register:
        return {
            Variable.A: self.a,
            Variable.B: self.b,
            Variable.C: self.c,
            Variable.D: self.d,
        }[variable]

    def get(self, variable: Variable) -> Number:
        return self.register(variable).read()

    def resolve(self, operand: VarOrNum) -> Number:
        if isinstance(operand, Variable):
            return self.get(operand)
        return Number(self.a.bit_depth, operand)

    def evaluate(self, condition: Condition) -> bool:
        left = self.get(condition.variable)
        right = self.resolve(condition.operand)
        return _COMPARATORS[condition.comp](left.value, right.value)

    def dump(self) -> str:
        return ' '.join(f'{v.value}={self.get(v)}' for v in Variable)


class ControlUnit:

    def __init__(self, program: Sequence[Command], state: State, input_device: Device, output_device: Device):
        self._program = program
        self._state = state
        self._input = input_device
        self._output = output_device
        self.pc: int = 0
        self.instruction: Optional[Command] = None

    @property
    def halted(self) -> bool:
        return not 0 <= self.pc < len(self._program)

    def step(self) -> None:
        if self.halted:
            raise HaltedError()

        self.instruction = self._program[self.pc]
        self.pc += 1
        logging.debug('pc=%d %s', self.pc, format_command(self.instruction))
        self._perform()
        logging.debug('     %s', self._state.dump())

    def _perform(self):
        {
            PrintRegister: self._pvr,
            PrintText: self._ptx,
            Newline: self._nln,
            LoadToVariable: self._ltv,
            Set: self._set,
            Add: self._add,
            Sub: self._sub,
            IfJump: self._ifj,
            Jump: self._jmp,
        }.get(type(self.instruction), self._invalid_operation)()

    def _invalid_operation(self):
        raise InstructionError(self.instruction, 'invalid operation')

    def _write(self, text: str) -> None:
        try:
            self._output.write(text)
        except (OSError, UnicodeError) as e:
            raise ExecutionError(ExecutionErrorKind.IO, str(e))

    def _jump(self, dest: JumpDest) -> None:
        # pc already points past the current instruction
        if dest.kind == JumpKind.NEXT:
            pass
        elif dest.kind == JumpKind.END:
            self.pc = len(self._program)
        elif dest.kind == JumpKind.NTH:
            # may land past the end, which halts like END
            self.pc = dest.line - 1
        else:
            raise InstructionError(self.instruction, f'invalid jump destination {dest!r}')

    def _pvr(self):
        self._write(str(self._state.get(self.instruction.variable)))

    def _ptx(self):
        self._write(self.instruction.text)

    def _nln(self):
        self._write('\n')

    def _ltv(self):
        try:
            self._output.flush()
            line = self._input.read()
        except (OSError, UnicodeError) as e:
            raise ExecutionError(ExecutionErrorKind.IO, str(e))

        try:
            value = parse_unsigned(line.strip(), ADDRESS_BITS)
        except ValueError as e:
            raise ExecutionError(ExecutionErrorKind.INPUT, str(e))

        self._state.register(self.instruction.variable).write(value)

    def _set(self):
        value = self._state.resolve(self.instruction.operand)
        self._state.register(self.instruction.variable).write(value)

    def _add(self, inv=False):
        register = self._state.register(self.instruction.variable)
        value = self._state.resolve(self.instruction.operand)
        if inv:
            register.write(register.read() - value)
        else:
            register.write(register.read() + value)

    def _sub(self):
        self._add(inv=True)

    def _ifj(self):
        if self._state.evaluate(self.instruction.condition):
            self._jump(self.instruction.then)
        else:
            self._jump(self.instruction.otherwise)

    def _jmp(self):
        self._jump(self.instruction.dest)


class Machine:
    bit_depth = 64

    def __init__(self,
                 program: Sequence[Command],
                 input_device: Optional[Device] = None,
                 output_device: Optional[Device] = None,
                 ):
        self._program = tuple(program)
        self._input: Device = input_device or ConsoleInputDevice()
        self._output: Device = output_device or ConsoleOutputDevice()
        self.state: State = State(self.bit_depth)
        self._control_unit: ControlUnit = ControlUnit(
            self._program,
            self.state,
            self._input,
            self._output,
        )

    @property
    def pc(self) -> int:
        return self._control_unit.pc

    def single_step(self) -> bool:
        """Execute one instruction. False once the program has finished."""
        try:
            self._control_unit.step()
        except HaltedError:
            logging.debug('Machine halted')
            return False
        return True

    def run(self) -> int:
        """Run to completion and return the number of executed instructions."""
        executed = 0
        while True:
            try:
                self._control_unit.step()
            except HaltedError:
                logging.debug('Machine halted after %d instructions', executed)
                break
            executed += 1

        # only reached on normal completion
        try:
            self._output.flush()
        except (OSError, UnicodeError) as e:
            raise ExecutionError(ExecutionErrorKind.IO, str(e))
        return executed
