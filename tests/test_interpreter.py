import io

import pytest

from calclang.errors import CalcError
from calclang.interpreter import Interpreter, parse_program, run_program
from calclang.types import VOID, ArrayVal, ObjectVal


def evaluate_expr(source):
    """Evaluate a single expression statement and return its value."""
    program = parse_program(source + '\n')
    interp = Interpreter()
    return program.children[0].evaluate(interp, interp.global_env)


@pytest.mark.parametrize('source, expected, kind', [
    ('1 + 2', 3, int),
    ('1 + 2.0', 3.0, float),
    ('1.5 * 2', 3.0, float),
    ('7 - 10', -3, int),
    ('7 / 2', 3, int),
    ('-7 / 2', -3, int),
    ('7.0 / 2', 3.5, float),
    ('2 ^ 10', 1024, int),
    ('4.0 ^ 0.5', 2.0, float),
    ('2 ^ -1', 0, int),
    ('-(3)', -3, int),
    ('-2.5', -2.5, float),
])
def test_arithmetic_kinds(source, expected, kind):
    value = evaluate_expr(source)
    assert value == expected
    assert type(value) is kind


def test_precedence_examples():
    assert evaluate_expr('2 + 3 * 4') == 14
    assert evaluate_expr('2 ^ 3 ^ 2') == 512


def test_void_operand_gives_void():
    interp = run_program('int[2] a\nint x\nx = 5\nx = a + 1\n')
    # a + 1 has no numeric value, so the assignment is skipped
    assert interp.global_env.get('x') == 5
    program = parse_program('a * 2\n')
    assert program.children[0].evaluate(interp, interp.global_env) is VOID


def test_division_by_zero():
    with pytest.raises(CalcError) as excinfo:
        run_program('int x\nx = 4 / 0\n')
    assert excinfo.value.err.name == 'ArithmeticError'


def test_assignment_keeps_declared_kind():
    interp = run_program('int i\nreal r\ni = 2.9\nr = 3\n')
    env = interp.global_env
    assert env.get('i') == 2 and type(env.get('i')) is int
    assert env.get('r') == 3.0 and type(env.get('r')) is float
    interp = run_program('int i\ni = -2.9\n')
    assert interp.global_env.get('i') == -2


def test_redeclaration_is_an_error():
    with pytest.raises(CalcError) as excinfo:
        run_program('int x\nreal x\n')
    assert excinfo.value.err.name == 'NameError'
    assert 'Redeclaration of x' in str(excinfo.value)
    with pytest.raises(CalcError):
        run_program('int x\nint[3] x\n')


@pytest.mark.parametrize('source', [
    'print y\n',
    'y = 1\n',
    'int x\nx = y + 1\n',
    'scanf(y)\n',
    'y[0] = 1\n',
    'print y[0]\n',
    'Thing t\n',
])
def test_undeclared_names(source):
    with pytest.raises(CalcError) as excinfo:
        run_program(source, stdin=io.StringIO('1\n'))
    assert excinfo.value.err.name == 'NameError'
    assert 'not defined' in str(excinfo.value)


def test_error_mentions_line():
    with pytest.raises(CalcError) as excinfo:
        run_program('int x\nx = 1\nprint missing\n')
    assert 'missing not defined. (line 3)' in str(excinfo.value)


def test_if_runs_body_at_most_once(capsys):
    run_program('int x\nx = 1\nif (x is 1) ->\nprint "yes"\nendif\nif (x is 2) ->\nprint "no"\nendif\n')
    assert capsys.readouterr().out.splitlines() == ['yes']


def test_while_false_at_start_never_runs(capsys):
    run_program('int x\nwhile (x > 0) ->\nprint x\nendwhile\n')
    assert capsys.readouterr().out == ''


@pytest.mark.parametrize('cond, expected', [
    ('1 < 2', '1'),
    ('2 < 1', '0'),
    ('2 > 1', '1'),
    ('3 is 3', '1'),
    ('3 is 4', '0'),
    ('3 isnot 4', '1'),
    ('3 isnot 3', '0'),
    ('1.5 < 1.7', '0'),
    ('2.9 is 2', '1'),
    ('-2.5 < -2', '0'),
    ('2.0 is 2', '1'),
])
def test_relational_operators(capsys, cond, expected):
    run_program(f'int r\nif ({cond}) ->\nr = 1\nendif\nprint r\n')
    assert capsys.readouterr().out.strip() == expected


def test_while_with_real_counter(capsys):
    run_program('real t\nwhile (t < 1) ->\nt = t + 0.25\nendwhile\nprint t\n')
    assert capsys.readouterr().out.strip() == '1.0'


def test_print_formats(capsys):
    run_program('real r\nint[3] a\nr = 2\na[0] = 1\nprint r\nprint a\nprint a[1] + 1\nprint "a   b"\n')
    assert capsys.readouterr().out.splitlines() == ['2.0', '[1, 0, 0]', '1', 'a b']


def test_array_round_trip():
    interp = run_program('int[5] a\na[2] = 7\n')
    arr = interp.global_env.get('a')
    assert isinstance(arr, ArrayVal)
    assert arr.items == [0, 0, 7, 0, 0]
    program = parse_program('a[2]\n')
    assert program.children[0].evaluate(interp, interp.global_env) == 7


def test_array_kind_mismatch_is_skipped(capsys):
    interp = run_program('int[3] a\nreal[2] r\na[0] = 1.5\nr[1] = 4\na[1] = 9\nprint "after"\n')
    captured = capsys.readouterr()
    assert captured.out.strip() == 'after'
    assert captured.err.count('result type of expression does not match the array element type') == 2
    assert interp.global_env.get('a').items == [0, 9, 0]
    assert interp.global_env.get('r').items == [0.0, 0.0]


def test_array_size_from_variable():
    interp = run_program('int n\nn = 3\nreal[n] r\nr[2] = 1.5\n')
    assert interp.global_env.get('r').items == [0.0, 0.0, 1.5]


@pytest.mark.parametrize('source', [
    'int[3] a\na[3] = 1\n',
    'int[3] a\nprint a[-1]\n',
    'int[3] a\nint i\ni = 5\nprint a[i]\n',
])
def test_array_bounds_are_checked(source):
    with pytest.raises(CalcError) as excinfo:
        run_program(source)
    assert excinfo.value.err.name == 'IndexError'


def test_array_misuse():
    with pytest.raises(CalcError) as excinfo:
        run_program('int x\nprint x[0]\n')
    assert excinfo.value.err.name == 'TypeError'
    with pytest.raises(CalcError) as excinfo:
        run_program('int[2] a\na = 3\n')
    assert excinfo.value.err.name == 'TypeError'


def test_scanf_errors():
    with pytest.raises(CalcError) as excinfo:
        run_program('int n\nscanf(n)\n', stdin=io.StringIO(''))
    assert excinfo.value.err.name == 'InputError'
    with pytest.raises(CalcError) as excinfo:
        run_program('int n\nscanf(n)\n', stdin=io.StringIO('abc\n'))
    assert excinfo.value.err.name == 'InputError'
    with pytest.raises(CalcError) as excinfo:
        run_program('int[2] a\nscanf(a)\n', stdin=io.StringIO('1\n'))
    assert excinfo.value.err.name == 'TypeError'


def test_scanf_integer_rejects_real_text():
    with pytest.raises(CalcError):
        run_program('int n\nscanf(n)\n', stdin=io.StringIO('2.5\n'))


def test_scanf_stores_value():
    interp = run_program('int a\nreal b\nscanf(a)\nscanf(b)\n', stdin=io.StringIO('-4\n1e3\n'))
    assert interp.global_env.get('a') == -4
    assert interp.global_env.get('b') == 1000.0


COUNTER = '''
class Counter ->
    public int count
    public real[2] history
    def add(int n) ->
        count = count + n
    enddef
    def reset() ->
        count = 0
    enddef
endclass
'''


def test_objects_have_independent_fields():
    interp = run_program(COUNTER + 'Counter a\nCounter b\na.add(5)\na.add(2)\nb.add(1)\n')
    a = interp.global_env.get('a')
    b = interp.global_env.get('b')
    assert isinstance(a, ObjectVal) and a.class_name == 'Counter'
    assert a.fields.get('count') == 7
    assert b.fields.get('count') == 1
    assert a.fields.get('history') is not b.fields.get('history')


def test_field_write_and_read(capsys):
    run_program(COUNTER + 'Counter c\nc.count = 2.7\nprint c.count * 10\nc.reset()\nprint c.count\n')
    assert capsys.readouterr().out.splitlines() == ['20', '0']


def test_method_arguments_are_bound():
    interp = run_program(COUNTER + 'Counter c\nint k\nk = 4\nc.add(k * 2)\n')
    assert interp.global_env.get('c').fields.get('count') == 8
    # parameters live in the call scope only
    assert not interp.global_env.exists('n')


def test_method_argument_count_must_match():
    with pytest.raises(CalcError) as excinfo:
        run_program(COUNTER + 'Counter c\nc.add()\n')
    assert excinfo.value.err.name == 'TypeError'


def test_method_can_read_globals(capsys):
    run_program('int scale\nscale = 3\nclass P ->\n  public int v\n  def show() ->\n    print v + scale\n  enddef\nendclass\nP p\np.v = 2\np.show()\n')
    assert capsys.readouterr().out.strip() == '5'


def test_method_not_found():
    with pytest.raises(CalcError) as excinfo:
        run_program(COUNTER + 'Counter c\nc.fly()\n')
    assert excinfo.value.err.name == 'MethodError'
    assert 'Method: fly not found in: c' in str(excinfo.value)


def test_parent_method_fallback(capsys):
    source = (
        'class Base ->\n  public int x\n  def hello() ->\n    print "base hello"\n  enddef\n'
        '  def who() ->\n    print "base"\n  enddef\nendclass\n'
        'class Child derived Base ->\n  public int y\n  def who() ->\n    print "child"\n  enddef\nendclass\n'
        'Child c\nc.who()\nc.hello()\nc.x = 1\nc.y = 2\nprint c.x + c.y\n'
    )
    run_program(source)
    assert capsys.readouterr().out.splitlines() == ['child', 'base hello', '3']


def test_inheritance_is_single_level():
    source = (
        'class A ->\n  def a() ->\n    print 1\n  enddef\nendclass\n'
        'class B derived A ->\nendclass\n'
        'class C derived B ->\nendclass\n'
        'C c\nc.a()\n'
    )
    with pytest.raises(CalcError) as excinfo:
        run_program(source)
    assert excinfo.value.err.name == 'MethodError'


def test_object_errors():
    with pytest.raises(CalcError) as excinfo:
        run_program('int x\nint y\nx y\n')
    assert excinfo.value.err.name == 'TypeError'
    with pytest.raises(CalcError) as excinfo:
        run_program('int x\nx.go()\n')
    assert excinfo.value.err.name == 'TypeError'
    with pytest.raises(CalcError) as excinfo:
        run_program(COUNTER + 'Counter c\nprint c.total\n')
    assert excinfo.value.err.name == 'NameError'
    with pytest.raises(CalcError) as excinfo:
        run_program(COUNTER + 'Counter c\nCounter c\n')
    assert excinfo.value.err.name == 'NameError'


def test_separate_interpreters_do_not_share_state():
    first = run_program('int x\nx = 1\n')
    second = run_program('int x\nx = 2\n')
    assert first.global_env.get('x') == 1
    assert second.global_env.get('x') == 2


def test_debug_trace(tmp_path):
    debug_file = tmp_path / 'trace.txt'
    interp = Interpreter(debug_level=3, debug_file=str(debug_file))
    interp.run(parse_program('int x\nx = 2\nif (x > 1) ->\nx = x * 2\nendif\n'))
    trace = debug_file.read_text().splitlines()
    assert trace[0] == 'run program (3 statements)'
    assert 'declare x: Integer' in trace
    assert 'assign x = 2' in trace
    assert 'condition 2 > 1 -> 1' in trace
    assert 'assign x = 4' in trace


def test_condition_truncates_reals(capsys):
    run_program('real t\nt = 0.9\nwhile (t < 1) ->\nt = t + 0.5\nendwhile\nprint t\n')
    # 1.4 truncates to 1, which ends the loop
    assert capsys.readouterr().out.strip() == '1.4'


INFINITE = 'real r\nr = 10.0 ^ 300\nr = r * r\n'


@pytest.mark.parametrize('source', [
    INFINITE + 'int i\ni = r\n',
    INFINITE + 'real n\nn = r - r\nint i\ni = n\n',
    INFINITE + 'int[2] a\nprint a[r]\n',
    INFINITE + 'int[2] a\na[r] = 1\n',
    INFINITE + 'int[r] a\n',
    INFINITE + 'if (r > 1) ->\nprint r\nendif\n',
    'int b\nb = 10 ^ 300\nb = b * b\nprint b + 1.0\n',
    'int b\nb = 10 ^ 300\nb = b * b\nprint b / 0.5\n',
    INFINITE + 'int i\ni = r * 2\n',
])
def test_unrepresentable_numbers_are_arithmetic_errors(source):
    with pytest.raises(CalcError) as excinfo:
        run_program(source)
    assert excinfo.value.err.name == 'ArithmeticError'


def test_infinite_real_prints(capsys):
    run_program(INFINITE + 'print r\n')
    assert capsys.readouterr().out.strip() == 'inf'


def test_literal_text_is_split_on_whitespace_only(capsys):
    run_program('print "a+b  =   c"\n')
    assert capsys.readouterr().out.strip() == 'a+b = c'


def test_debug_trace_survives_second_run(tmp_path):
    debug_file = tmp_path / 'trace.txt'
    interp = Interpreter(debug_level=1, debug_file=str(debug_file))
    interp.run(parse_program('int x\n'))
    interp.run(parse_program('int y\nint z\n'))
    trace = debug_file.read_text().splitlines()
    assert trace == ['run program (1 statements)', 'run program (2 statements)']
