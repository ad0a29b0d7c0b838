import io

import pytest

from assembly import parse
from device import ConsoleInputDevice
from device import ConsoleOutputDevice
from isa import Command
from isa import Variable
from machine import ExecutionError
from machine import ExecutionErrorKind
from machine import InstructionError
from machine import Machine


def make_machine(lines, stdin=''):
    out = io.StringIO()
    machine = Machine(
        parse(lines),
        input_device=ConsoleInputDevice(io.StringIO(stdin)),
        output_device=ConsoleOutputDevice(out),
    )
    return machine, out


def run(lines, stdin=''):
    machine, out = make_machine(lines, stdin)
    machine.run()
    return machine, out.getvalue()


def test_set_add_sub():
    _, out = run(['SET A 5', 'PVR A', 'ADD A 3', 'PVR A', 'SUB A 10', 'PVR A'])
    assert out == '58-2'


def test_source_order_without_jumps():
    machine, out = run(['PTX "one "', 'PTX "two "', 'NLN', 'PTX "three"'])
    assert out == 'one two \nthree'
    assert machine.pc == 4


def test_run_counts_instructions():
    machine, _ = make_machine(['NLN', 'NLN', 'NLN'])
    assert machine.run() == 3


def test_single_newline_program():
    _, out = run(['NLN'])
    assert out == '\n'


def test_register_operands():
    machine, out = run(['SET B 7', 'SET C B', 'ADD C C', 'SUB D C', 'PVR D'])
    assert out == '-14'
    assert machine.state.get(Variable.B).value == 7


@pytest.mark.parametrize('value, expected_pc', [(0, 2), (1, 4)])
def test_conditional_jump_sets_pc(value, expected_pc):
    machine, _ = make_machine([f'SET A {value}', 'IFJ A EQ 0 3 5', 'NLN', 'NLN', 'NLN'])
    machine.single_step()
    machine.single_step()
    assert machine.pc == expected_pc


def test_jump_next_falls_through():
    _, out = run(['JMP NXT', 'PTX "x"', 'IFJ A = 0 NEXT END', 'PTX "y"'])
    assert out == 'xy'


def test_jump_end_terminates():
    _, out = run(['PTX "a"', 'JMP END', 'PTX "b"'])
    assert out == 'a'


def test_out_of_range_jump_terminates_normally():
    machine, out = run(['PTX "a"', 'JMP 9999', 'PTX "b"'])
    assert out == 'a'
    assert machine.single_step() is False


def test_backward_jump_loop():
    program = [
        'SET A 0',
        'ADD A 1',
        'PVR A',
        'IFJ A < 5 2 NXT',
        'NLN',
    ]
    _, out = run(program)
    assert out == '12345\n'


def test_countdown_with_symbolic_comparisons():
    program = [
        'SET B 3          # counter',
        'IF B <= 0 END NXT',
        'PVR B',
        'PTX ","',
        'SUB B 1',
        'JMP 2',
    ]
    _, out = run(program)
    assert out == '3,2,1,'


def test_escaped_text_printed_verbatim():
    _, out = run([r'PTX "a\"b\\c"'])
    assert out == 'a"b\\c'
    assert len(out) == 5


def test_load_to_variable_trims_input():
    machine, out = run(['LTV A', 'PVR A'], stdin='  42  \n')
    assert out == '42'
    assert machine.state.get(Variable.A).value == 42


def test_load_reads_one_line_per_command():
    _, out = run(['LTV A', 'LTV B', 'ADD A B', 'PVR A'], stdin='2\n40\n')
    assert out == '42'


@pytest.mark.parametrize('stdin', ['-1\n', 'abc\n', '\n', '', '18446744073709551616\n'])
def test_load_rejects_bad_input(stdin):
    machine, _ = make_machine(['LTV A'], stdin)
    with pytest.raises(ExecutionError) as exc:
        machine.run()
    assert exc.value.kind == ExecutionErrorKind.INPUT


def test_load_flushes_output_first():
    events = []

    class Output(ConsoleOutputDevice):
        def flush(self):
            events.append('flush')

    class Input(ConsoleInputDevice):
        def read(self):
            events.append('read')
            return '1\n'

    machine = Machine(parse(['PTX "> "', 'LTV A']), input_device=Input(), output_device=Output(io.StringIO()))
    machine.run()
    assert events[:2] == ['flush', 'read']


def test_input_wraps_to_signed():
    _, out = run(['LTV A', 'PVR A'], stdin='18446744073709551615\n')
    assert out == '-1'


def test_add_overflow_wraps():
    program = ['LTV A', 'ADD A 1', 'PVR A']
    _, out = run(program, stdin=f'{2 ** 63 - 1}\n')
    assert out == str(-2 ** 63)


def test_sub_underflow_wraps():
    machine, _ = run(['LTV A', 'SUB A 1'], stdin=f'{2 ** 63}\n')
    assert machine.state.get(Variable.A).value == 2 ** 63 - 1


def test_program_is_not_mutated():
    program = parse(['SET A 1', 'ADD A A', 'IFJ A < 100 2 END'])
    before = list(program)
    machine = Machine(program, output_device=ConsoleOutputDevice(io.StringIO()))
    machine.run()
    assert program == before


def test_unknown_command_is_rejected():
    machine = Machine([Command()], output_device=ConsoleOutputDevice(io.StringIO()))
    with pytest.raises(InstructionError):
        machine.run()


def test_output_error_is_execution_error():
    class BrokenOutput(ConsoleOutputDevice):
        def write(self, text):
            raise OSError('broken pipe')

    machine = Machine(parse(['NLN']), output_device=BrokenOutput())
    with pytest.raises(ExecutionError) as exc:
        machine.run()
    assert exc.value.kind == ExecutionErrorKind.IO


def test_undecodable_input_is_io_error():
    stdin = io.TextIOWrapper(io.BytesIO(b'\xff\xfe4\n'), encoding='utf-8')
    machine = Machine(
        parse(['LTV A']),
        input_device=ConsoleInputDevice(stdin),
        output_device=ConsoleOutputDevice(io.StringIO()),
    )
    with pytest.raises(ExecutionError) as exc:
        machine.run()
    assert exc.value.kind == ExecutionErrorKind.IO


def test_unencodable_output_is_io_error():
    stdout = io.TextIOWrapper(io.BytesIO(), encoding='ascii')
    machine = Machine(parse(['PTX "café"']), output_device=ConsoleOutputDevice(stdout))
    with pytest.raises(ExecutionError) as exc:
        machine.run()
    assert exc.value.kind == ExecutionErrorKind.IO


def test_final_flush_error_is_io_error():
    class BrokenFlush(ConsoleOutputDevice):
        def flush(self):
            raise OSError('disk full')

    machine = Machine(parse(['PTX "a"']), output_device=BrokenFlush(io.StringIO()))
    with pytest.raises(ExecutionError) as exc:
        machine.run()
    assert exc.value.kind == ExecutionErrorKind.IO
    assert 'disk full' in str(exc.value)


def test_input_error_not_hidden_by_flush():
    flushes = []

    class BrokenFlush(ConsoleOutputDevice):
        def flush(self):
            flushes.append(len(flushes))
            if len(flushes) > 1:
                raise OSError('disk full')

    machine = Machine(
        parse(['LTV A']),
        input_device=ConsoleInputDevice(io.StringIO('abc\n')),
        output_device=BrokenFlush(io.StringIO()),
    )
    with pytest.raises(ExecutionError) as exc:
        machine.run()
    assert exc.value.kind == ExecutionErrorKind.INPUT
    assert flushes == [0]


def test_default_devices_use_console(capsys):
    Machine(parse(['SET A 5', 'PVR A', 'NLN'])).run()
    assert capsys.readouterr().out == '5\n'
