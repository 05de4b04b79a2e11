"""
Runtime for blocrun programs.

This package provides:
- Scope: node-keyed variable store, scope stack and resolution
- Expansion: `{name}` interpolation in raw text
- Context: per-run execution state
- Builtins: the builtin function registry
- Actions: the execution trace and replay helpers
- Interpreter: tree-walking execution of the AST
"""

from .scope import (
    VariableKey,
    VariableStore,
    ScopeStack,
    resolve,
)

from .expansion import expand_variables

from .console import Console

from .actions import (
    Action,
    ActionType,
    Goto,
    Return,
    CheckVarNameValidity,
    EvaluateRawText,
    AssignVariable,
    CallBuildInFn,
    PushStdout,
    GetArgs,
    ControlFlowEvaluateCondition,
    Error,
    trace_types,
    trace_to_json,
    active_node_at,
    step_bounds,
)

from .context import (
    State,
    ExecutionContext,
    create_context,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    execute_node,
    run,
    validate_name,
)


__all__ = [
    # Scope
    'VariableKey',
    'VariableStore',
    'ScopeStack',
    'resolve',
    'expand_variables',
    'Console',
    # Actions
    'Action',
    'ActionType',
    'Goto',
    'Return',
    'CheckVarNameValidity',
    'EvaluateRawText',
    'AssignVariable',
    'CallBuildInFn',
    'PushStdout',
    'GetArgs',
    'ControlFlowEvaluateCondition',
    'Error',
    'trace_types',
    'trace_to_json',
    'active_node_at',
    'step_bounds',
    # Context
    'State',
    'ExecutionContext',
    'create_context',
    # Builtins
    'BuiltinFunction',
    'BuiltinRegistry',
    'get_builtin_registry',
    # Interpreter
    'Interpreter',
    'ExecutionResult',
    'execute_node',
    'run',
    'validate_name',
]
