"""Built-in functions of the Inline Logic Engine.

Every handler receives arguments that were already resolved to plain
strings and returns a string. Arity mismatches, bad numbers and lookup
misses all produce ``""``. Only storage failures propagate, as
``LookupStoreError`` raised by the lookup store.
"""

import asyncio
import logging
import math
import random
import re
from collections.abc import Awaitable, Callable, Sequence

from replybot.interfaces.lookup import BaseLookupStore, stringify_value
from replybot.strategies.ile.models import ILEContext

logger = logging.getLogger(__name__)

Handler = Callable[[Sequence[str], ILEContext], Awaitable[str]]

_INT_PREFIX_RE = re.compile(r"\s*([+-]?\d+)", re.ASCII)


def parse_number(value: str) -> float | None:
    """Parse a finite float, or return None."""
    try:
        number = float(value.strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_int_prefix(value: str) -> int | None:
    """Parse the leading integer of a string (``"12abc"`` -> 12)."""
    match = _INT_PREFIX_RE.match(value)
    if match is None:
        return None
    return int(match.group(1))


def image_name(prefix: str, suffix: str) -> str:
    return f"{prefix}{suffix}"


class FunctionTable:
    """Dispatches resolved calls to the built-in functions.

    Attributes:
        store: Tenant-scoped row and image lookups.
        rng: Source of randomness for ``rand``.
    """

    def __init__(self, store: BaseLookupStore, rng: random.Random | None = None) -> None:
        """Initialize the table.

        Args:
            store: Lookup store for ``tbl``, ``get_url`` and ``img_conv``.
            rng: Random generator; a fresh unseeded one if None.
        """
        self.store = store
        self.rng = rng or random.Random()
        self._handlers: dict[str, Handler] = {
            "set": self._set,
            "rand": self._rand,
            "tbl": self._tbl,
            "get_name": self._get_name,
            "get_url": self._get_url,
            "img_conv": self._img_conv,
        }

    async def dispatch(self, name: str, args: Sequence[str], context: ILEContext) -> str:
        """Run a built-in by name.

        Args:
            name: Function name from the template.
            args: Resolved argument strings.
            context: The invocation's variable scope.

        Returns:
            The function result; "" for unknown names.
        """
        handler = self._handlers.get(name)
        if handler is None:
            logger.debug(f"Unknown ILE function: {name}")
            return ""
        return await handler(args, context)

    def random_int(self, minimum: float, maximum: float) -> str:
        """Uniform inclusive integer over the floored bounds; "" if empty."""
        low = math.floor(minimum)
        high = math.floor(maximum)
        if low > high:
            return ""
        return str(self.rng.randint(low, high))

    async def _lookup(self, coro: Awaitable[str], context: ILEContext) -> str:
        """Await a store call within the context's remaining time budget."""
        if context.check_expired():
            if asyncio.iscoroutine(coro):
                coro.close()
            return ""

        try:
            return await asyncio.wait_for(coro, timeout=context.remaining())
        except asyncio.TimeoutError:
            context.expired = True
            logger.warning(
                f"ILE lookup timed out for tenant {context.tenant_id}; "
                "remaining lookups resolve to empty strings"
            )
            return ""

    async def _set(self, args: Sequence[str], context: ILEContext) -> str:
        if len(args) == 2:
            context.variables[args[0]] = args[1]
        return ""

    async def _rand(self, args: Sequence[str], context: ILEContext) -> str:
        if len(args) != 2:
            return ""
        minimum = parse_number(args[0])
        maximum = parse_number(args[1])
        if minimum is None or maximum is None:
            return ""
        return self.random_int(minimum, maximum)

    async def _tbl(self, args: Sequence[str], context: ILEContext) -> str:
        if len(args) == 2:
            generation_id, row_arg, field_name = None, args[0], args[1]
        elif len(args) == 3:
            generation_id, row_arg, field_name = args[0].strip() or None, args[1], args[2]
        else:
            return ""

        row_number = parse_int_prefix(row_arg)
        if row_number is None or not field_name:
            return ""

        return await self._lookup(
            self.store.get_row_value(context.tenant_id, generation_id, row_number, field_name),
            context,
        )

    async def _get_name(self, args: Sequence[str], context: ILEContext) -> str:
        if len(args) != 2 or not args[0]:
            return ""
        return image_name(args[0], args[1])

    async def _get_url(self, args: Sequence[str], context: ILEContext) -> str:
        if len(args) != 1 or not args[0]:
            return ""
        return await self._lookup(
            self.store.get_image_url_by_name(context.tenant_id, args[0]),
            context,
        )

    async def _img_conv(self, args: Sequence[str], context: ILEContext) -> str:
        if len(args) != 2 or not args[0]:
            return ""
        return await self._lookup(
            self.store.get_image_url_by_name(context.tenant_id, image_name(args[0], args[1])),
            context,
        )


def variable_value(name: str, context: ILEContext) -> str:
    """Read a bound variable as a string; unbound names read as ""."""
    return stringify_value(context.variables.get(name))
