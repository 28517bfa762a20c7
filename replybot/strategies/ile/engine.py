"""Inline Logic Engine (ILE).

Expands ``${...}`` expressions inside JSON reply templates:

    {"__vars__": [{"lucky": "${rand:1:100}"}],
     "__messages__": [{"type": "text", "text": "Your number is ${lucky}"}]}

Each string leaf is rewritten by a bounded fixpoint loop. One pass finds
the top-level spans, resolves the arguments of every call in source
order, applies the top-level ``set`` calls, dispatches the remaining spans
and splices the results back in descending offset order. The loop stops
when a pass changes nothing, when the pass cap is hit or when the string
would outgrow the length limit.

Traversal is strictly sequential and in source order, because a ``set``
made while rewriting one leaf must be visible to every later leaf.
"""

import logging
import random
import time
from typing import Any

import structlog

from replybot.interfaces.lookup import BaseLookupStore, TenantId
from replybot.strategies.ile.functions import FunctionTable, variable_value
from replybot.strategies.ile.models import Call, ILEContext, RandShorthand, Span, VarRef
from replybot.strategies.ile.scanner import OPEN_TOKEN, find_spans, parse_call, parse_expression, unquote

logger = logging.getLogger(__name__)
trace_logger = structlog.get_logger("replybot.ile.trace")

VARS_KEY = "__vars__"
MESSAGES_KEY = "__messages__"
DEFAULT_MAX_PASSES = 100
DEFAULT_MAX_STRING_LENGTH = 65536
DEFAULT_MAX_NESTING_DEPTH = 50


class InlineLogicEngine:
    """Evaluates ILE templates for one tenant at a time.

    The engine itself is stateless between calls; every
    ``process_messages`` call builds a fresh ``ILEContext``, so concurrent
    invocations never share variables.
    """

    def __init__(
        self,
        store: BaseLookupStore,
        rng: random.Random | None = None,
        max_passes: int = DEFAULT_MAX_PASSES,
        timeout_seconds: float | None = None,
        max_string_length: int = DEFAULT_MAX_STRING_LENGTH,
        trace: bool = False,
        max_nesting_depth: int = DEFAULT_MAX_NESTING_DEPTH,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Lookup store for table rows and image URLs.
            rng: Random generator for ``rand``; unseeded if None.
            max_passes: Iteration cap of the per-string fixpoint loop.
            timeout_seconds: Time budget of one invocation; None for no limit.
            max_string_length: Circuit breaker for strings that keep growing.
            trace: Emit a structured DEBUG event for every resolved span.
            max_nesting_depth: How deep call arguments may nest before they
                resolve to "".
        """
        if max_passes < 1:
            raise ValueError("max_passes must be at least 1")

        self.functions = FunctionTable(store, rng)
        self.max_passes = max_passes
        self.timeout_seconds = timeout_seconds
        self.max_string_length = max_string_length
        self.trace = trace
        self.max_nesting_depth = max_nesting_depth

    def new_context(self, tenant_id: TenantId) -> ILEContext:
        deadline = None
        if self.timeout_seconds:
            deadline = time.monotonic() + self.timeout_seconds
        return ILEContext(tenant_id=str(tenant_id), deadline=deadline)

    # =========================================================================
    # Template entrypoint
    # =========================================================================

    async def process_messages(self, raw: Any, tenant_id: TenantId) -> list[Any]:
        """Expand a stored template into a message list.

        Accepts either a bare message array or an envelope object with
        ``__vars__`` and ``__messages__``. Malformed shapes yield ``[]``.

        Args:
            raw: The parsed template JSON.
            tenant_id: Tenant whose rows and images may be read.

        Returns:
            The expanded messages.

        Raises:
            LookupStoreError: If the lookup store fails.
        """
        context = self.new_context(tenant_id)

        if isinstance(raw, list):
            return await self.process_value(raw, context)

        if isinstance(raw, dict) and VARS_KEY in raw:
            await self.seed_variables(raw[VARS_KEY], context)

            messages = raw.get(MESSAGES_KEY)
            if isinstance(messages, list):
                return await self.process_value(messages, context)
            return []

        logger.debug(f"Unsupported template shape for tenant {context.tenant_id}: {type(raw).__name__}")
        return []

    async def seed_variables(self, block: Any, context: ILEContext) -> None:
        """Bind the ``__vars__`` block into the context.

        The array form ``[{"a": ...}, {"b": "${a}"}]`` is bound strictly in
        order, and only the first key of each element is used. The object
        form is bound in the mapping's own key order, which a JSON store
        does not guarantee to match the author's.
        """
        if isinstance(block, list):
            for item in block:
                if not isinstance(item, dict) or not item:
                    continue
                key, value = next(iter(item.items()))
                if len(item) > 1:
                    logger.debug(f"__vars__ element has {len(item)} keys; only '{key}' is bound")
                context.variables[key] = await self.process_value(value, context)
        elif isinstance(block, dict):
            for key, value in block.items():
                context.variables[key] = await self.process_value(value, context)

    # =========================================================================
    # Value walker
    # =========================================================================

    async def process_value(self, value: Any, context: ILEContext) -> Any:
        """Rewrite every string leaf of a JSON value, in source order."""
        if isinstance(value, str):
            return await self.evaluate_string(value, context)
        if isinstance(value, list):
            return [await self.process_value(item, context) for item in value]
        if isinstance(value, dict):
            return {key: await self.process_value(item, context) for key, item in value.items()}
        return value

    # =========================================================================
    # Evaluation loop
    # =========================================================================

    async def evaluate_string(self, text: str, context: ILEContext, depth: int = 0) -> str:
        """Rewrite one string until it stops changing.

        Args:
            text: The string to rewrite.
            context: The invocation's variable scope.
            depth: How many call arguments deep this string sits.

        Returns:
            The rewritten string, possibly partial if a limit was hit.
        """
        if OPEN_TOKEN not in text:
            return text

        result = text
        for pass_no in range(1, self.max_passes + 1):
            spans = find_spans(result)
            if not spans:
                break

            replacements = await self._evaluate_spans(spans, context, pass_no, depth)

            growth = sum(len(value) - len(span.raw) for span, value in replacements)
            if growth > 0 and len(result) + growth > self.max_string_length:
                logger.warning(
                    f"ILE string would grow past {self.max_string_length} characters "
                    f"on pass {pass_no}; stopping with a partial result"
                )
                break

            previous = result
            for span, value in sorted(replacements, key=lambda r: r[0].start_index, reverse=True):
                result = result[: span.start_index] + value + result[span.end_index :]

            if result == previous or OPEN_TOKEN not in result:
                break
        else:
            logger.warning(f"ILE pass cap of {self.max_passes} reached; returning partial result")

        return result

    async def _evaluate_spans(
        self, spans: list[Span], context: ILEContext, pass_no: int, depth: int
    ) -> list[tuple[Span, str]]:
        """Resolve one pass worth of spans.

        Arguments of every call are resolved first, in source order, so
        nested ``set`` calls commit before any top-level one. Top-level
        ``set`` calls then write to the context, and only after that are
        the remaining spans dispatched.
        """
        parsed = [(span, parse_expression(span.content)) for span in spans]

        resolved: dict[int, list[str]] = {}
        for span, expression in parsed:
            if isinstance(expression, Call):
                resolved[span.start_index] = await self.resolve_args(expression.args, context, depth)

        replacements: list[tuple[Span, str]] = []

        for span, expression in parsed:
            if isinstance(expression, Call) and expression.name == "set":
                value = await self.functions.dispatch("set", resolved[span.start_index], context)
                self._trace(span, value, context, pass_no)
                replacements.append((span, value))

        for span, expression in parsed:
            if isinstance(expression, Call):
                if expression.name == "set":
                    continue
                value = await self.functions.dispatch(expression.name, resolved[span.start_index], context)
            elif isinstance(expression, RandShorthand):
                value = self.functions.random_int(expression.minimum, expression.maximum)
            elif isinstance(expression, VarRef):
                value = variable_value(expression.name, context)
            else:
                value = ""
            self._trace(span, value, context, pass_no)
            replacements.append((span, value))

        return replacements

    async def resolve_args(self, raw_args: tuple[str, ...], context: ILEContext, depth: int = 0) -> list[str]:
        """Resolve raw call arguments to plain strings.

        Each argument is unquoted first. An argument containing ``${`` is
        rewritten by the evaluation loop; a bare ``name(args)`` is wrapped
        as ``${name(args)}`` and rewritten the same way; anything else is
        taken literally. Nested ``set`` calls commit as they resolve.
        Arguments nested deeper than ``max_nesting_depth`` resolve to "".
        """
        resolved: list[str] = []
        for raw in raw_args:
            arg = unquote(raw)
            if OPEN_TOKEN in arg:
                expression = arg
            elif parse_call(arg) is not None:
                expression = f"{OPEN_TOKEN}{arg}}}"
            else:
                resolved.append(arg)
                continue

            if depth >= self.max_nesting_depth:
                logger.warning(
                    f"ILE argument nesting exceeds {self.max_nesting_depth} levels "
                    f"for tenant {context.tenant_id}; resolving it to an empty string"
                )
                resolved.append("")
                continue

            resolved.append(await self.evaluate_string(expression, context, depth + 1))
        return resolved

    def _trace(self, span: Span, value: str, context: ILEContext, pass_no: int) -> None:
        if self.trace:
            trace_logger.debug(
                "ile.span",
                content=span.content,
                value=value,
                pass_no=pass_no,
                tenant_id=context.tenant_id,
            )


async def process_messages(
    raw: Any,
    tenant_id: TenantId,
    store: BaseLookupStore,
    **options: Any,
) -> list[Any]:
    """Expand a template with a one-off engine.

    Args:
        raw: The parsed template JSON.
        tenant_id: Tenant whose rows and images may be read.
        store: Lookup store to resolve ``tbl``/``get_url``/``img_conv``.
        **options: Keyword arguments for ``InlineLogicEngine``.

    Returns:
        The expanded messages.
    """
    engine = InlineLogicEngine(store, **options)
    return await engine.process_messages(raw, tenant_id)
