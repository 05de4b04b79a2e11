"""
Tree-walking interpreter for blocrun programs.

Evaluates AST nodes, mutating the variables, scope stack, console and
trace held by an ExecutionContext. Every node visit follows the same
protocol whatever its kind and outcome:

    push id, record Goto(id), dispatch, pop id, record Return(result)

Structured errors are raised as ExecutionError; each node on the way
up records its Return with the error messages before re-raising, so the
trace stays bracketed and the scope stack balanced.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .actions import (
    Action, AssignVariable, CallBuildInFn, CheckVarNameValidity,
    ControlFlowEvaluateCondition, Error, EvaluateRawText, GetArgs,
)
from .builtins import BuiltinRegistry, get_builtin_registry
from .context import ExecutionContext, State, create_context
from .console import Console
from .expansion import expand_variables
from .scope import VariableKey, resolve
from ..arith import evaluate
from ..ast import (
    Node, Sequence, While, IfElse, RawText, VariableAssignment,
    FunctionCall, FunctionDeclaration,
)
from ..config import RunnerConfig
from ..errors import (
    CoercionError, ErrorKind, ErrorMessage, ExecutionError, ExpansionError,
    InfiniteLoop, InvalidType, NameFailure, NestingTooDeep, NotMathError,
    RootIsNotSequence, Unimplemented, UnknownFunction, ValueType,
    VariableNameError, VoidAssignment,
)
from ..values import BOOL_ACCEPTED, Value, string_val


logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Result of running a program."""
    value: Optional[Value] = None
    errors: List[ErrorMessage] = field(default_factory=list)
    console: Console = field(default_factory=Console)
    trace: List[Action] = field(default_factory=list)
    variables: Dict[VariableKey, Value] = field(default_factory=dict)
    states: List[State] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def stdout(self) -> List[str]:
        return self.console.stdout


def validate_name(name: str) -> Optional[ErrorKind]:
    """
    Check a variable name.

    A name must be non-empty and start with a letter or an underscore.
    Returns the error kind, or None when the name is valid.
    """
    if not name:
        return VariableNameError(NameFailure.EMPTY)
    if not (name[0].isalpha() or name[0] == '_'):
        return VariableNameError(NameFailure.INVALID_FIRST_CHAR)
    return None


class Interpreter:
    """
    Tree-walking interpreter for blocrun programs.

    Evaluates AST nodes by dispatching to kind-specific methods.
    """

    def __init__(self, config: RunnerConfig = None):
        """
        Initialize the interpreter.

        Args:
            config: Runner settings; defaults apply when omitted
        """
        self.config = config or RunnerConfig()
        self.builtins: BuiltinRegistry = self.config.builtins or get_builtin_registry()

    def run(
        self,
        root: Node,
        variables: Optional[Mapping[VariableKey, Value]] = None,
    ) -> ExecutionResult:
        """
        Run a whole program.

        Args:
            root: The program root; must be a Sequence node
            variables: Initial bindings, keyed by (name, owner scope id)

        Returns:
            ExecutionResult with console output, trace and final variables
        """
        ctx = create_context(variables, self.config)

        if not isinstance(root.data, Sequence):
            logger.debug("rejecting root node %d of kind %s", root.id, root.kind)
            kind = RootIsNotSequence()
            ctx.record(Error(kind))
            return self._result(ctx, errors=[ErrorMessage((), kind)])

        logger.debug("running program rooted at node %d", root.id)
        try:
            value = self.execute_node(root, ctx)
        except ExecutionError as e:
            logger.debug("run failed after %d actions: %s", len(ctx.trace), e)
            return self._result(ctx, errors=e.messages)
        except RecursionError:
            # Only reachable when max_depth exceeds what the Python stack
            # holds; the unwound nodes have no Return in the trace.
            depth = len(ctx.scope_stack)
            logger.warning("Python stack exhausted at block depth %d", depth)
            kind = NestingTooDeep(depth)
            ctx.record(Error(kind))
            return self._result(ctx, errors=[ErrorMessage(ctx.scope_stack.path, kind)])

        logger.debug("run finished after %d actions", len(ctx.trace))
        return self._result(ctx, value=value)

    def _result(
        self,
        ctx: ExecutionContext,
        value: Optional[Value] = None,
        errors: List[ErrorMessage] = None,
    ) -> ExecutionResult:
        return ExecutionResult(
            value=value,
            errors=list(errors or []),
            console=ctx.console,
            trace=ctx.trace,
            variables=ctx.variables.snapshot(),
            states=ctx.states,
        )

    def execute_node(self, node: Node, ctx: ExecutionContext) -> Optional[Value]:
        """
        Execute one node and return its result (None for a void result).

        Raises ExecutionError when the node fails. A node that would nest
        deeper than config.max_depth is not entered; the error is reported
        at its parent's path.
        """
        if len(ctx.scope_stack) >= self.config.max_depth:
            raise ctx.error(NestingTooDeep(self.config.max_depth))
        ctx.enter(node)
        try:
            value = self._dispatch(node, ctx)
        except ExecutionError as e:
            logger.debug("node %d (%s) failed: %s", node.id, node.kind, e)
            ctx.leave(node, errors=tuple(e.messages))
            raise
        ctx.leave(node, value)
        return value

    def _dispatch(self, node: Node, ctx: ExecutionContext) -> Optional[Value]:
        data = node.data
        if isinstance(data, Sequence):
            return self._execute_sequence(data, ctx)
        elif isinstance(data, While):
            return self._execute_while(data, ctx)
        elif isinstance(data, IfElse):
            return self._execute_if_else(data, ctx)
        elif isinstance(data, RawText):
            return self._execute_raw_text(node, data, ctx)
        elif isinstance(data, VariableAssignment):
            return self._execute_assignment(node, data, ctx)
        elif isinstance(data, FunctionCall):
            return self._execute_call(node, data, ctx)
        elif isinstance(data, FunctionDeclaration):
            raise ctx.error(Unimplemented("function declaration"))
        else:
            raise RuntimeError(f"Unknown node type: {type(data).__name__}")

    def _execute_sequence(self, data: Sequence, ctx: ExecutionContext) -> Optional[Value]:
        """Execute children in order; the first non-void result ends the block."""
        for child in data.children:
            value = self.execute_node(child, ctx)
            if value is not None:
                return value
        return None

    def _evaluate_condition(self, condition: Node, ctx: ExecutionContext) -> bool:
        """Record the condition check, execute the condition and coerce it."""
        ctx.record(ControlFlowEvaluateCondition(), condition.id)
        value = self.execute_node(condition, ctx)
        if value is None:
            raise ctx.error(InvalidType(BOOL_ACCEPTED, ValueType.NONE))
        try:
            return value.to_bool()
        except CoercionError as e:
            raise ctx.error(e.kind)

    def _execute_while(self, data: While, ctx: ExecutionContext) -> Optional[Value]:
        """Execute a pre-test loop, bounded by config.max_iterations."""
        if data.is_do:
            raise ctx.error(Unimplemented("do-while loop"))

        max_iterations = self.config.max_iterations
        iterations = 0
        while self._evaluate_condition(data.condition, ctx):
            value = self.execute_node(data.sequence, ctx)
            if value is not None:
                return value
            iterations += 1
            if iterations == max_iterations:
                logger.warning(
                    "loop at %s stopped after %d iterations", ctx.scope_stack.path, iterations
                )
                raise ctx.error(InfiniteLoop(iterations, max_iterations))
        return None

    def _execute_if_else(self, data: IfElse, ctx: ExecutionContext) -> Optional[Value]:
        """Execute the first branch whose condition holds, else the else block."""
        if self._evaluate_condition(data.if_.condition, ctx):
            return self.execute_node(data.if_.sequence, ctx)
        for branch in data.elif_ or ():
            if self._evaluate_condition(branch.condition, ctx):
                return self.execute_node(branch.sequence, ctx)
        if data.else_ is not None:
            return self.execute_node(data.else_, ctx)
        return None

    def _execute_raw_text(self, node: Node, data: RawText, ctx: ExecutionContext) -> Value:
        """Interpolate variables, then evaluate as math when the text parses."""
        ctx.record(EvaluateRawText(), node.id)
        try:
            text = expand_variables(data.text, ctx.variables, ctx.scope_stack)
        except ExpansionError as e:
            raise ctx.error(e.kind)
        try:
            return evaluate(text)
        except NotMathError:
            return string_val(text)

    def _execute_assignment(
        self, node: Node, data: VariableAssignment, ctx: ExecutionContext
    ) -> None:
        """Bind a value, reusing the owner scope of an existing binding."""
        name_error = validate_name(data.name)
        ctx.record(CheckVarNameValidity(name_error), node.id)
        if name_error is not None:
            raise ctx.error(name_error)

        value = self.execute_node(data.value, ctx)
        if value is None:
            raise ctx.error(VoidAssignment(data.name))

        found = resolve(data.name, ctx.variables, ctx.scope_stack)
        if found is not None:
            owner = found[1]
        else:
            # The top of the stack is this assignment; its block is below it
            owner = ctx.scope_stack.enclosing()

        ctx.assign(data.name, owner, value)
        ctx.record(AssignVariable((data.name, owner), value), node.id)
        return None

    def _execute_call(self, node: Node, data: FunctionCall, ctx: ExecutionContext) -> None:
        """Evaluate arguments in order, then call the builtin."""
        ctx.record(GetArgs(), node.id)
        args = [self.execute_node(arg, ctx) for arg in data.argv]

        ctx.record(CallBuildInFn(data.name), node.id)
        func = self.builtins.get_function(data.name)
        if func is None:
            raise ctx.error(UnknownFunction(data.name))
        func.implementation(args, ctx, node.id)
        return None


def execute_node(node: Node, ctx: ExecutionContext) -> Optional[Value]:
    """Execute a single node against an existing context."""
    return Interpreter(ctx.config).execute_node(node, ctx)


def run(
    root: Node,
    config: RunnerConfig = None,
    variables: Optional[Mapping[VariableKey, Value]] = None,
) -> ExecutionResult:
    """
    Convenience function to run a program.

    Args:
        root: The program root; must be a Sequence node
        config: Runner settings
        variables: Initial bindings, keyed by (name, owner scope id)

    Returns:
        ExecutionResult
    """
    return Interpreter(config).run(root, variables)
