# -*- coding: utf-8 -*-

"""Declarative cross-cutting rules.

A Filter names the kind(s) of object it applies to, the method it wraps and the function that builds
the wrapper. It is registered independently of its targets; `Registry.apply_filters` matches it against
every registered object exactly once.

A filter that swaps the result for a 404 without delegating:

    Filter(
        kind=ActionKind.READ_ITEM,
        method="handle",
        resource="tasks",
        filter=lambda next, self, registry: not_found,
    )

A filter that adds a condition and delegates:

    def scoped(next, self, registry):
        async def conditions(params, request):
            result = await next(params, request)
            return result + [Condition("deleted", False)]
        return conditions
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple, Union

Kind = Union[str, Sequence[str]]


@dataclass(eq=False)
class Filter:
    """
    :param kind: kind (or kinds) of the objects to wrap, eg. `ActionKind.READ_ITEM`
    :param method: name of the filterable method to wrap
    :param filter: `filter(next, owner, registry)` returns the replacement implementation.
        `next` is the implementation that was current before this filter was applied.
    :param where: optional predicate, the filter is skipped for objects where it returns `False`
    :param resource: optional resource name, only objects bound to this resource match
    """

    kind: Kind
    method: str
    filter: Callable[..., Callable]
    where: Optional[Callable[[Any], Any]] = None
    resource: Optional[str] = None

    @property
    def kinds(self) -> Tuple[str, ...]:
        if isinstance(self.kind, str):
            return (self.kind,)
        return tuple(self.kind)
