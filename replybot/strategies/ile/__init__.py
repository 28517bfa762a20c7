"""Inline Logic Engine strategies.

Expands ``${...}`` expressions inside JSON reply templates.
"""

from replybot.strategies.ile.engine import InlineLogicEngine, process_messages
from replybot.strategies.ile.functions import FunctionTable
from replybot.strategies.ile.models import Call, ILEContext, RandShorthand, Span, VarRef
from replybot.strategies.ile.scanner import find_spans, parse_expression, split_args, unquote

__all__ = [
    "InlineLogicEngine",
    "process_messages",
    "FunctionTable",
    "ILEContext",
    "Span",
    "Call",
    "RandShorthand",
    "VarRef",
    "find_spans",
    "parse_expression",
    "split_args",
    "unquote",
]
