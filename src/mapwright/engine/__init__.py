"""Value resolution and Execution Config compilation.

Both entry points take an immutable MappingGraph snapshot, never raise on
graph content, and return new values:

    resolve_graph(graph) -> ResolutionResult (resolved snapshot + warnings)
    compile_execution_config(graph, name) -> ExecutionConfig
"""

from mapwright.engine.compiler import ExecutionCompiler, compile_execution_config, compile_mappings
from mapwright.engine.conditions import evaluate_condition
from mapwright.engine.resolver import ResolutionResult, ValueResolver, resolve, resolve_graph
from mapwright.engine.steps import build_execution_steps
from mapwright.engine.transforms import (
    apply_coalesce,
    apply_concat,
    apply_conversion,
    apply_string_operation,
    to_text,
)

__all__ = [
    "ExecutionCompiler",
    "ResolutionResult",
    "ValueResolver",
    "apply_coalesce",
    "apply_concat",
    "apply_conversion",
    "apply_string_operation",
    "build_execution_steps",
    "compile_execution_config",
    "compile_mappings",
    "evaluate_condition",
    "resolve",
    "resolve_graph",
    "to_text",
]
