"""
Tests for the blocrun interpreter: node semantics, traces and errors.
"""

import logging

import pytest

from blocrun import (
    Node, FunctionDeclaration, RunnerConfig, run, sequence, while_loop, if_else,
    raw_text, assign, call, int_val, float_val, bool_val, string_val,
    DEFAULT_MAX_DEPTH, ErrorMessage, ExecutionError, ScopeStackError, ValueType,
    InfiniteLoop, InvalidType, NestingTooDeep, RootIsNotSequence, Unimplemented,
    UnknownFunction, VariableExpansionError, VariableNameError, VoidAssignment,
)
from blocrun.errors import ExpansionFailure, NameFailure
from blocrun.values import BOOL_ACCEPTED
from blocrun.runtime import (
    Action, Goto, Return, CheckVarNameValidity, EvaluateRawText, AssignVariable,
    CallBuildInFn, PushStdout, GetArgs, ControlFlowEvaluateCondition, Error,
    BuiltinFunction, BuiltinRegistry, Interpreter, create_context, trace_types,
)


def assign_and_print():
    """x = 42; print({x})"""
    return sequence(
        0,
        assign(1, "x", raw_text(2, "42")),
        call(3, "print", raw_text(4, "{x}")),
    )


def loop_forever():
    return sequence(0, while_loop(1, raw_text(2, "1"), sequence(3)))


def count_type(trace, action_type):
    return sum(1 for t in trace_types(trace) if t == action_type)


def nested_sequences(depth):
    """Sequences 0..depth-1, each holding the next one."""
    node = sequence(depth - 1)
    for node_id in range(depth - 2, -1, -1):
        node = sequence(node_id, node)
    return node


def assert_balanced(trace):
    gotos = sum(1 for a in trace if isinstance(a.type, Goto))
    returns = sum(1 for a in trace if isinstance(a.type, Return))
    assert gotos == returns


# --- End-to-end programs ---

class TestPrograms:
    """Test complete programs against their exact traces."""

    def test_empty_sequence(self):
        """An empty root does nothing."""
        result = run(sequence(0))
        assert result.success
        assert result.value is None
        assert trace_types(result.trace) == [Goto(0), Return()]

    def test_assign_and_print(self):
        """Assigning then printing a variable."""
        result = run(assign_and_print())
        assert result.success
        assert result.value is None
        assert result.console.stdout == ["42"]
        assert result.variables == {("x", 0): int_val(42)}
        assert trace_types(result.trace) == [
            Goto(0),
            Goto(1),
            CheckVarNameValidity(),
            Goto(2),
            EvaluateRawText(),
            Return(int_val(42)),
            AssignVariable(("x", 0), int_val(42)),
            Return(),
            Goto(3),
            GetArgs(),
            Goto(4),
            EvaluateRawText(),
            Return(int_val(42)),
            CallBuildInFn("print"),
            PushStdout("42"),
            Return(),
            Return(),
        ]

    def test_print_raw_text(self):
        """Printing a literal."""
        result = run(sequence(0, call(1, "print", raw_text(2, "42"))))
        assert result.stdout == ["42"]
        assert trace_types(result.trace) == [
            Goto(0),
            Goto(1),
            GetArgs(),
            Goto(2),
            EvaluateRawText(),
            Return(int_val(42)),
            CallBuildInFn("print"),
            PushStdout("42"),
            Return(),
            Return(),
        ]

    def test_math_expression_result(self):
        """Raw text with variables is evaluated as math."""
        program = sequence(
            0,
            assign(1, "x", raw_text(2, "42")),
            raw_text(3, "2 + 2 - {x}"),
        )
        result = run(program)
        assert result.value == int_val(-38)
        assert trace_types(result.trace)[-3:] == [
            EvaluateRawText(),
            Return(int_val(-38)),
            Return(int_val(-38)),
        ]

    def test_while_loop_prints_variable(self):
        """A while loop driven by a preset variable."""
        program = while_loop(
            0,
            raw_text(1, "{x} < 2"),
            sequence(
                200,
                call(4, "print", raw_text(5, "x={x} !")),
                assign(2, "x", raw_text(3, "{x} + 1")),
            ),
        )
        ctx = create_context({("x", 0): int_val(0)})
        value = Interpreter().execute_node(program, ctx)

        assert value is None
        assert ctx.console.stdout == ["x=0 !", "x=1 !"]
        assert ctx.variables.snapshot() == {("x", 0): int_val(2)}

        def iteration(printed, new_x):
            return [
                ControlFlowEvaluateCondition(),
                Goto(1),
                EvaluateRawText(),
                Return(int_val(1)),
                Goto(200),
                Goto(4),
                GetArgs(),
                Goto(5),
                EvaluateRawText(),
                Return(string_val(printed)),
                CallBuildInFn("print"),
                PushStdout(printed),
                Return(),
                Goto(2),
                CheckVarNameValidity(),
                Goto(3),
                EvaluateRawText(),
                Return(int_val(new_x)),
                AssignVariable(("x", 0), int_val(new_x)),
                Return(),
                Return(),
            ]

        assert trace_types(ctx.trace) == (
            [Goto(0)]
            + iteration("x=0 !", 1)
            + iteration("x=1 !", 2)
            + [
                ControlFlowEvaluateCondition(),
                Goto(1),
                EvaluateRawText(),
                Return(int_val(0)),
                Return(),
            ]
        )

    def test_if_elif_else(self):
        """The else block runs when no condition holds."""
        program = sequence(
            0,
            assign(1, "x", raw_text(2, "10")),
            if_else(
                3,
                raw_text(4, "{x} > 10"),
                sequence(200, assign(5, "x", raw_text(6, "{x} + 1"))),
                elifs=[(raw_text(7, "{x} > 20"), sequence(201, assign(8, "x", raw_text(9, "{x} + 2"))))],
                else_body=sequence(202, assign(11, "x", raw_text(12, "{x} + 3"))),
            ),
        )
        result = run(program)
        assert result.success
        assert result.variables == {("x", 0): int_val(13)}
        assert trace_types(result.trace)[8:] == [
            Goto(3),
            ControlFlowEvaluateCondition(),
            Goto(4),
            EvaluateRawText(),
            Return(int_val(0)),
            ControlFlowEvaluateCondition(),
            Goto(7),
            EvaluateRawText(),
            Return(int_val(0)),
            Goto(202),
            Goto(11),
            CheckVarNameValidity(),
            Goto(12),
            EvaluateRawText(),
            Return(int_val(13)),
            AssignVariable(("x", 0), int_val(13)),
            Return(),
            Return(),
            Return(),
            Return(),
        ]

    def test_elif_taken(self):
        """The first true elif runs and later branches are skipped."""
        program = sequence(
            0,
            if_else(
                1,
                raw_text(2, "0"),
                sequence(3, call(4, "print", raw_text(5, "if"))),
                elifs=[
                    (raw_text(6, "1"), sequence(7, call(8, "print", raw_text(9, "elif")))),
                    (raw_text(10, "1"), sequence(11, call(12, "print", raw_text(13, "second")))),
                ],
                else_body=sequence(14, call(15, "print", raw_text(16, "else"))),
            ),
        )
        result = run(program)
        assert result.stdout == ["elif"]
        assert count_type(result.trace, ControlFlowEvaluateCondition()) == 2

    def test_if_without_else(self):
        """A false if with no else does nothing."""
        program = sequence(0, if_else(1, raw_text(2, "1 > 2"), sequence(3, raw_text(4, "5"))))
        result = run(program)
        assert result.success
        assert result.value is None
        assert Goto(3) not in trace_types(result.trace)


# --- Node semantics ---

class TestNodeTree:
    """Test tree traversal helpers."""

    def test_walk_order(self):
        """walk yields each node before its descendants."""
        assert [n.id for n in assign_and_print().walk()] == [0, 1, 2, 3, 4]

    def test_children_in_execution_order(self):
        """Conditions come before their bodies, else last."""
        node = if_else(
            0, raw_text(1, "0"), sequence(2),
            elifs=((raw_text(3, "1"), sequence(4)),),
            else_body=sequence(5),
        )
        assert [c.id for c in node.children()] == [1, 2, 3, 4, 5]

    def test_walk_matches_executed_nodes(self):
        """A run that takes every path visits exactly the walked nodes."""
        program = assign_and_print()
        visited = [a.node_id for a in run(program).trace if isinstance(a.type, Goto)]
        assert visited == [n.id for n in program.walk()]

    def test_leaf_has_no_children(self):
        """Raw text is a leaf."""
        assert list(raw_text(0, "1").children()) == []


class TestSequence:
    """Test block execution."""

    def test_first_value_stops_block(self):
        """A child producing a value ends the block."""
        program = sequence(
            0,
            raw_text(1, "42"),
            raw_text(2, "24"),
            call(3, "print", raw_text(4, "42")),
        )
        result = run(program)
        assert result.value == int_val(42)
        assert result.stdout == []
        assert trace_types(result.trace) == [
            Goto(0),
            Goto(1),
            EvaluateRawText(),
            Return(int_val(42)),
            Return(int_val(42)),
        ]

    def test_raw_text_at_top(self):
        """A raw text node executed directly returns its value."""
        ctx = create_context()
        value = Interpreter().execute_node(raw_text(0, "42"), ctx)
        assert value == int_val(42)
        assert trace_types(ctx.trace) == [Goto(0), EvaluateRawText(), Return(int_val(42))]


class TestRawText:
    """Test raw text evaluation."""

    def run_text(self, text, **variables):
        bindings = {(name, 0): value for name, value in variables.items()}
        return run(sequence(0, raw_text(1, text)), variables=bindings).value

    def test_plain_string(self):
        """Non-math text stays a string."""
        assert self.run_text("hello") == string_val("hello")

    def test_int_sum(self):
        """Interpolated ints are added."""
        assert self.run_text("{x}+{y}", x=int_val(2), y=int_val(3)) == int_val(5)

    def test_float_variable(self):
        """A float variable evaluates back to a float."""
        assert self.run_text("{x}", x=float_val(3.5)) == float_val(3.5)

    def test_integral_division(self):
        """Integral results are ints even from division."""
        assert self.run_text("9 / 3") == int_val(3)

    def test_bool_variable(self):
        """Bools interpolate as true/false, which is plain text."""
        assert self.run_text("{b}", b=bool_val(True)) == string_val("true")

    def test_long_flat_sum(self):
        """A thousand-term sum is math, not text."""
        assert self.run_text("+".join(["1"] * 1000)) == int_val(1000)

    def test_long_flat_sum_of_variables(self):
        """Interpolated terms in a long sum are added."""
        assert self.run_text("+".join(["{x}"] * 600), x=int_val(2)) == int_val(1200)

    def test_expansion_error(self):
        """A missing variable fails at the raw text node."""
        result = run(sequence(0, raw_text(1, "{y}")))
        assert not result.success
        assert result.errors == [
            ErrorMessage((0, 1), VariableExpansionError(ExpansionFailure.VARIABLE_NOT_FOUND, "y"))
        ]


class TestAssignment:
    """Test variable assignment and scoping."""

    def test_reassign(self):
        """Reassigning updates the same key."""
        program = sequence(
            0,
            assign(1, "x", raw_text(2, "42")),
            assign(3, "x", raw_text(4, "24")),
        )
        result = run(program)
        assert result.variables == {("x", 0): int_val(24)}
        assert AssignVariable(("x", 0), int_val(24)) in trace_types(result.trace)

    def test_reassign_keeps_original_scope(self):
        """Reassigning from a nested block updates the original owner."""
        program = sequence(
            0,
            assign(1, "x", raw_text(2, "42")),
            sequence(3, assign(4, "x", raw_text(5, "24"))),
        )
        result = run(program)
        assert result.variables == {("x", 0): int_val(24)}
        assert trace_types(result.trace)[8:] == [
            Goto(3),
            Goto(4),
            CheckVarNameValidity(),
            Goto(5),
            EvaluateRawText(),
            Return(int_val(24)),
            AssignVariable(("x", 0), int_val(24)),
            Return(),
            Return(),
            Return(),
        ]

    def test_new_binding_owned_by_enclosing_block(self):
        """A new name belongs to the block enclosing the assignment."""
        program = sequence(0, sequence(1, assign(2, "y", raw_text(3, "1"))))
        result = run(program)
        assert result.variables == {("y", 1): int_val(1)}

    def test_nested_binding_invisible_outside(self):
        """A binding owned by a nested block is not visible after it."""
        program = sequence(
            0,
            sequence(1, assign(2, "y", raw_text(3, "1"))),
            call(4, "print", raw_text(5, "{y}")),
        )
        result = run(program)
        assert not result.success
        assert result.errors[0].error_kind == VariableExpansionError(
            ExpansionFailure.VARIABLE_NOT_FOUND, "y"
        )
        assert result.errors[0].scope_path == (0, 4, 5)

    def test_assignment_in_loop_body(self):
        """New names in a loop body belong to the body block."""
        program = sequence(
            0,
            assign(1, "i", raw_text(2, "0")),
            while_loop(
                3,
                raw_text(4, "{i} < 3"),
                sequence(5, assign(6, "i", raw_text(7, "{i} + 1")), assign(8, "last", raw_text(9, "{i}"))),
            ),
        )
        result = run(program)
        assert result.variables == {("i", 0): int_val(3), ("last", 5): int_val(3)}

    @pytest.mark.parametrize("name,reason", [
        ("", NameFailure.EMPTY),
        ("1x", NameFailure.INVALID_FIRST_CHAR),
        (" x", NameFailure.INVALID_FIRST_CHAR),
    ])
    def test_invalid_name(self, name, reason):
        """Invalid names fail before the value is evaluated."""
        result = run(sequence(0, assign(1, name, raw_text(2, "1"))))
        kind = VariableNameError(reason)
        assert result.errors == [ErrorMessage((0, 1), kind)]
        assert CheckVarNameValidity(kind) in trace_types(result.trace)
        assert Goto(2) not in trace_types(result.trace)
        assert result.variables == {}

    @pytest.mark.parametrize("name", ["x", "_x", "été", "x1"])
    def test_valid_name(self, name):
        """Names starting with a letter or underscore are accepted."""
        result = run(sequence(0, assign(1, name, raw_text(2, "1"))))
        assert result.success
        assert result.variables == {(name, 0): int_val(1)}

    def test_void_assignment(self):
        """Assigning a void result fails."""
        result = run(sequence(0, assign(1, "x", sequence(2))))
        assert result.errors == [ErrorMessage((0, 1), VoidAssignment("x"))]
        assert result.variables == {}

    def test_assignment_without_enclosing_block(self):
        """An assignment with no enclosing block is an internal error."""
        with pytest.raises(ScopeStackError):
            Interpreter().execute_node(assign(0, "x", raw_text(1, "1")), create_context())


class TestWhile:
    """Test while loops and the loop guard."""

    def test_loop_guard(self):
        """An always-true loop stops after max_iterations bodies."""
        result = run(loop_forever(), config=RunnerConfig(max_iterations=5))
        assert result.errors == [ErrorMessage((0, 1), InfiniteLoop(5, 5))]
        assert count_type(result.trace, Goto(3)) == 5
        assert count_type(result.trace, ControlFlowEvaluateCondition()) == 5
        assert_balanced(result.trace)

    def test_default_loop_guard(self):
        """The default cap is 100 iterations."""
        result = run(loop_forever())
        assert result.errors[0].error_kind == InfiniteLoop(100, 100)
        assert count_type(result.trace, Goto(3)) == 100

    def test_loop_guard_logs_warning(self, caplog):
        """Tripping the loop guard is logged."""
        with caplog.at_level(logging.WARNING, logger="blocrun"):
            run(loop_forever(), config=RunnerConfig(max_iterations=2))
        assert "stopped after 2 iterations" in caplog.text

    def test_body_value_ends_loop(self):
        """A body producing a value ends the loop with that value."""
        program = sequence(0, while_loop(1, raw_text(2, "1"), sequence(3, raw_text(4, "7"))))
        result = run(program)
        assert result.success
        assert result.value == int_val(7)
        assert count_type(result.trace, Goto(3)) == 1

    def test_false_condition(self):
        """A false condition skips the body."""
        program = sequence(0, while_loop(1, raw_text(2, "0"), sequence(3)))
        result = run(program)
        assert result.success
        assert Goto(3) not in trace_types(result.trace)

    def test_string_condition(self):
        """A string condition is a type error."""
        program = sequence(0, while_loop(1, raw_text(2, "hello"), sequence(3)))
        result = run(program)
        assert result.errors == [
            ErrorMessage((0, 1), InvalidType(BOOL_ACCEPTED, ValueType.STRING))
        ]

    def test_void_condition(self):
        """A void condition is a type error."""
        program = sequence(0, while_loop(1, sequence(2), sequence(3)))
        result = run(program)
        assert result.errors == [
            ErrorMessage((0, 1), InvalidType(BOOL_ACCEPTED, ValueType.NONE))
        ]

    def test_bool_variable_condition(self):
        """A bool variable drives a condition through its text form."""
        program = sequence(0, while_loop(1, raw_text(2, "{flag}"), sequence(3)))
        result = run(program, variables={("flag", 0): bool_val(False)})
        assert result.errors[0].error_kind == InvalidType(BOOL_ACCEPTED, ValueType.STRING)

    def test_do_while_unimplemented(self):
        """Do-while loops fail before evaluating the condition."""
        program = sequence(0, while_loop(1, raw_text(2, "0"), sequence(3), is_do=True))
        result = run(program)
        assert result.errors == [ErrorMessage((0, 1), Unimplemented("do-while loop"))]
        assert ControlFlowEvaluateCondition() not in trace_types(result.trace)


class TestFunctionCall:
    """Test builtin calls."""

    def test_print_several_arguments(self):
        """Each argument is printed on its own line, void as '()'."""
        program = sequence(
            0,
            call(1, "print", raw_text(2, "a"), sequence(3), raw_text(4, "1.5")),
        )
        result = run(program)
        assert result.stdout == ["a", "()", "1.5"]
        pushes = [t for t in trace_types(result.trace) if isinstance(t, PushStdout)]
        assert pushes == [PushStdout("a"), PushStdout("()"), PushStdout("1.5")]

    def test_print_without_arguments(self):
        """Printing nothing writes nothing."""
        result = run(sequence(0, call(1, "print")))
        assert result.success
        assert result.stdout == []

    def test_unknown_function(self):
        """Unknown builtins fail after the arguments are evaluated."""
        result = run(sequence(0, call(1, "foo", raw_text(2, "1"))))
        assert result.errors == [ErrorMessage((0, 1), UnknownFunction("foo"))]
        assert trace_types(result.trace)[-3:] == [
            CallBuildInFn("foo"),
            Return(errors=tuple(result.errors)),
            Return(errors=tuple(result.errors)),
        ]

    def test_argument_failure_aborts_call(self):
        """A failing argument stops evaluation of later arguments."""
        program = sequence(0, call(1, "print", raw_text(2, "{nope}"), raw_text(3, "1")))
        result = run(program)
        assert not result.success
        types = trace_types(result.trace)
        assert Goto(3) not in types
        assert CallBuildInFn("print") not in types
        assert result.stdout == []

    def test_custom_registry(self):
        """A registry passed through the config resolves calls."""
        registry = BuiltinRegistry()

        def shout(args, ctx, node_id):
            for arg in args:
                ctx.console.write(arg.display().upper())

        assert registry.names() == ["print"]
        registry.register(BuiltinFunction("shout", shout))
        assert registry.names() == ["print", "shout"]
        config = RunnerConfig(builtins=registry)
        result = run(sequence(0, call(1, "shout", raw_text(2, "hey"))), config=config)
        assert result.stdout == ["HEY"]


class TestFunctionDeclaration:
    """Test declared functions."""

    def test_declaration_unimplemented(self):
        """Executing a declaration is a structured error."""
        program = sequence(0, Node(1, FunctionDeclaration("f", sequence(2))))
        result = run(program)
        assert result.errors == [ErrorMessage((0, 1), Unimplemented("function declaration"))]


# --- Run-level behavior ---

class TestRootValidation:
    """Test the root-must-be-sequence rule."""

    def test_raw_text_root(self):
        """A non-sequence root records one error action and nothing else."""
        result = run(raw_text(0, "Hello world"))
        assert result.trace == [Action(Error(RootIsNotSequence()), None, 0)]
        assert result.stdout == []
        assert result.errors == [ErrorMessage((), RootIsNotSequence())]
        assert not result.success

    def test_while_root(self):
        """Any non-sequence kind is rejected."""
        result = run(loop_forever().data.children[0])
        assert result.errors == [ErrorMessage((), RootIsNotSequence())]


class TestStackBalance:
    """Test the push/pop discipline on success and failure."""

    @pytest.mark.parametrize("program", [
        assign_and_print(),
        loop_forever(),
        sequence(0, call(1, "nope")),
        sequence(0, sequence(1, sequence(2, raw_text(3, "{missing}")))),
        sequence(0, assign(1, "1x", raw_text(2, "1"))),
    ])
    def test_balanced(self, program):
        """Every Goto has a Return and the stack ends empty."""
        ctx = create_context(config=RunnerConfig(max_iterations=3))
        try:
            Interpreter(ctx.config).execute_node(program, ctx)
        except ExecutionError:
            pass
        assert len(ctx.scope_stack) == 0
        assert_balanced(ctx.trace)

    def test_error_propagates_through_ancestors(self):
        """Every ancestor of a failing node records the failure."""
        program = sequence(0, sequence(1, sequence(2, raw_text(3, "{missing}"))))
        result = run(program)
        errors = tuple(result.errors)
        assert result.errors[0].scope_path == (0, 1, 2, 3)
        assert trace_types(result.trace)[-4:] == [Return(errors=errors)] * 4


class TestNesting:
    """Test the block depth guard."""

    def test_depth_guard(self):
        """Nesting past max_depth is a structured error at the parent."""
        result = run(nested_sequences(400))
        assert not result.success
        assert result.errors == [
            ErrorMessage(tuple(range(DEFAULT_MAX_DEPTH)), NestingTooDeep(DEFAULT_MAX_DEPTH))
        ]
        assert Goto(DEFAULT_MAX_DEPTH) not in trace_types(result.trace)
        assert_balanced(result.trace)

    def test_custom_depth(self):
        """max_depth counts every entered node, leaves included."""
        program = sequence(0, sequence(1, sequence(2, raw_text(3, "1"))))
        result = run(program, config=RunnerConfig(max_depth=3))
        assert result.errors == [ErrorMessage((0, 1, 2), NestingTooDeep(3))]
        assert run(program, config=RunnerConfig(max_depth=4)).value == int_val(1)

    def test_stack_exhaustion_reported(self, caplog):
        """Running out of Python stack is reported, not raised."""
        config = RunnerConfig(max_depth=10 ** 6)
        with caplog.at_level(logging.WARNING, logger="blocrun.runtime.interpreter"):
            result = run(nested_sequences(5000), config=config)
        assert not result.success
        [message] = result.errors
        depth = len(message.scope_path)
        assert 0 < depth < 5000
        assert message.scope_path == tuple(range(depth))
        assert message.error_kind == NestingTooDeep(depth)
        assert result.trace[-1].type == Error(NestingTooDeep(depth))
        assert "stack exhausted" in caplog.text


class TestStateHistory:
    """Test variable snapshots."""

    def test_states(self):
        """One snapshot per assignment after the initial one."""
        result = run(assign_and_print())
        assert result.states == [{}, {("x", 0): int_val(42)}]

    def test_state_index(self):
        """Actions point at the snapshot current when recorded."""
        result = run(assign_and_print())
        assignment = next(a for a in result.trace if isinstance(a.type, AssignVariable))
        assert result.trace[0].state_index == 0
        assert assignment.state_index == 1
        assert result.trace[-1].state_index == 1

    def test_initial_variables(self):
        """Initial bindings form the first snapshot."""
        initial = {("x", 0): int_val(1)}
        result = run(sequence(0), variables=initial)
        assert result.states == [initial]
