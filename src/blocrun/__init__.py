"""
blocrun: execution engine for block-structured programs.

This package provides:
- AST: the node tree produced by a block editor
- Arith: arithmetic evaluation of raw text
- Runtime: a tree-walking interpreter that records every step in a trace
- Errors: structured error kinds and messages

Usage:
    from blocrun import run, sequence, assign, raw_text, call

    program = sequence(
        0,
        assign(1, "x", raw_text(2, "40 + 2")),
        call(3, "print", raw_text(4, "{x}")),
    )
    result = run(program)
    result.console.stdout       # ['42']
    result.variables            # {('x', 0): Int(42)}
    for action in result.trace:
        print(action.to_json())
"""

__version__ = "0.1.0"

from .ast import (
    Node,
    NodeData,
    Sequence,
    While,
    Branch,
    IfElse,
    RawText,
    VariableAssignment,
    FunctionCall,
    FunctionDeclaration,
    sequence,
    while_loop,
    if_else,
    raw_text,
    assign,
    call,
)

from .errors import (
    ErrorLevel,
    ValueType,
    ExpansionFailure,
    NameFailure,
    ErrorKind,
    InfiniteLoop,
    VariableExpansionError,
    RootIsNotSequence,
    InvalidType,
    VariableNameError,
    MathParsabilityError,
    VoidAssignment,
    UnknownFunction,
    Unimplemented,
    NestingTooDeep,
    ErrorMessage,
    BlocrunError,
    ExecutionError,
    ScopeStackError,
)

from .values import (
    Value,
    int_val,
    float_val,
    bool_val,
    string_val,
    wrap_value,
    display,
)

from .config import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MAX_DEPTH,
    RunnerConfig,
    load_config,
)

from .arith import (
    MathParsability,
    classify,
    evaluate,
)

from .runtime import (
    Action,
    ExecutionContext,
    create_context,
    Interpreter,
    ExecutionResult,
    execute_node,
    run,
    trace_to_json,
    active_node_at,
    step_bounds,
)


__all__ = [
    # AST
    'Node',
    'NodeData',
    'Sequence',
    'While',
    'Branch',
    'IfElse',
    'RawText',
    'VariableAssignment',
    'FunctionCall',
    'FunctionDeclaration',
    'sequence',
    'while_loop',
    'if_else',
    'raw_text',
    'assign',
    'call',
    # Errors
    'ErrorLevel',
    'ValueType',
    'ExpansionFailure',
    'NameFailure',
    'ErrorKind',
    'InfiniteLoop',
    'VariableExpansionError',
    'RootIsNotSequence',
    'InvalidType',
    'VariableNameError',
    'MathParsabilityError',
    'VoidAssignment',
    'UnknownFunction',
    'Unimplemented',
    'NestingTooDeep',
    'ErrorMessage',
    'BlocrunError',
    'ExecutionError',
    'ScopeStackError',
    # Values
    'Value',
    'int_val',
    'float_val',
    'bool_val',
    'string_val',
    'wrap_value',
    'display',
    # Config
    'DEFAULT_MAX_ITERATIONS',
    'DEFAULT_MAX_DEPTH',
    'RunnerConfig',
    'load_config',
    # Arith
    'MathParsability',
    'classify',
    'evaluate',
    # Runtime
    'Action',
    'ExecutionContext',
    'create_context',
    'Interpreter',
    'ExecutionResult',
    'execute_node',
    'run',
    'trace_to_json',
    'active_node_at',
    'step_bounds',
]
