# -*- coding: utf-8 -*-

"""Object and filter bookkeeping.

The registry has two phases. While BUILDING, objects (actions, sources, security backends) and filters
are registered in any order. `apply_filters` matches every filter against every object once, composes the
wrappers and moves the registry to FROZEN; no registration is accepted afterwards.
"""

from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Union

import prism
from .errors import ConfigurationError
from .filters import Filter, Kind


class RegistryState(str, Enum):
    BUILDING = "building"
    FROZEN = "frozen"


class Registry:
    """
    A Registry acts as a container for objects and Filters. In order for a Filter to be applied to an object,
    both must be registered with the same Registry. The plugin creates one Registry per api.
    """

    def __init__(self) -> None:
        self.state = RegistryState.BUILDING
        self._objects: List[Any] = []
        self._filters: List[Filter] = []

    @property
    def frozen(self) -> bool:
        return self.state is RegistryState.FROZEN

    @property
    def objects(self) -> List[Any]:
        return list(self._objects)

    @property
    def filters(self) -> List[Filter]:
        return list(self._filters)

    def _check_building(self, what: str) -> None:
        if self.frozen:
            raise ConfigurationError(f"Can't register {what} after the filters have been applied")

    def register_object(self, obj: Any) -> None:
        """
        Register an object with this registry. If `obj` has a `filters` attribute, register those Filters too.
        If it has a `register` attribute, the collaborator(s) it holds are registered as well
        (eg. the Source an action is bound to), so they can be found with `find_objects`.
        """
        self._check_building(repr(obj))
        if any(registered is obj for registered in self._objects):
            return

        self._objects.append(obj)

        filters = getattr(obj, "filters", None)
        if filters:
            self.register_filter(filters)

        collaborators = getattr(obj, "register", None)
        if collaborators is None:
            return
        if not isinstance(collaborators, (list, tuple)):
            collaborators = [collaborators]
        for collaborator in collaborators:
            self.register_object(collaborator)

    def register_filter(self, filter: Union[Filter, Iterable[Any]]) -> None:
        """
        Register a Filter, or a (nested) list of Filters, with this registry
        """
        if not isinstance(filter, Filter):
            for item in filter:
                self.register_filter(item)
            return

        self._check_building("a filter")
        if any(registered is filter for registered in self._filters):
            return
        self._filters.append(filter)

    def find_objects(self, kinds: Kind, where: Optional[Callable[[Any], Any]] = None, resource: Optional[str] = None) -> List[Any]:
        """
        Locate registered objects

        :param kinds: one kind or a list of kinds, an object matches if its `kind` is any of them
        :param where: predicate to disambiguate between multiple objects of the same kind
        :param resource: name of the resource the object must be bound to
        :return: the matching objects, in registration order
        """
        if isinstance(kinds, str):
            kinds = [kinds]
        kinds = list(kinds)

        result = []
        for obj in self._objects:
            if getattr(obj, "kind", None) not in kinds:
                continue
            if resource is not None and getattr(obj, "resource_name", None) != resource:
                continue
            if where is not None and where(obj) is False:
                continue
            result.append(obj)
        return result

    def apply_filters(self) -> None:
        """
        Apply each registered Filter to all registered matching objects, then freeze the registry.

        Filters are composed in registration order: the first filter registered for a method ends up
        closest to the base implementation and the last one registered runs outermost.
        """
        self._check_building("filters")
        applied = 0
        for filter in self._filters:
            for match in self.find_objects(filter.kinds, filter.where, filter.resource):
                match.compose(filter.method, self._wrap(filter, match, getattr(match, filter.method)))
                prism.log.debug("Filter on %s.%s applied to %s", filter.kinds, filter.method, match)
                applied += 1

        self.state = RegistryState.FROZEN
        prism.log.info("Registry frozen: %d objects, %d filters, %d matches", len(self._objects), len(self._filters), applied)

    def _wrap(self, filter: Filter, match: Any, next: Callable) -> Callable:
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return filter.filter(next, match, self)(*args, **kwargs)

        return wrapper
