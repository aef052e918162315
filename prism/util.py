#
import inspect
from functools import update_wrapper
from typing import Any, Callable, Optional
from .errors import ConfigurationError

CHAINS = "_prism_chains"


class filterable:
    """
    Method descriptor for the methods that filters may wrap

    Accessing the method on an instance returns the middleware chain that the registry composed for that
    instance, or the plain bound method when no filter matched. The base implementation stays on the class.
    """

    def __init__(self, func: Callable) -> None:
        self.func = func
        self.name = func.__name__
        update_wrapper(self, func)

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: Any, klass: Optional[type] = None) -> Any:
        """
        __get__
        """
        if obj is None:
            return self
        chain = obj.__dict__.get(CHAINS, {}).get(self.name)
        if chain is not None:
            return chain
        return self.func.__get__(obj, klass)


class Filterable:
    """
    Mixin for objects that expose filterable methods

    Subclasses that override a filterable method get the override wrapped in `filterable` as well,
    so `class ReadItem(Action): async def handle(...)` needs no decorator.
    """

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for name, value in list(vars(cls).items()):
            if not inspect.isfunction(value):
                continue
            for base in cls.__mro__[1:]:
                inherited = base.__dict__.get(name)
                if inherited is None:
                    continue
                if isinstance(inherited, filterable):
                    setattr(cls, name, filterable(value))
                break

    def compose(self, method: str, layer: Callable) -> None:
        """
        Store `layer` as the outermost implementation of `method` for this instance
        """
        if not isinstance(inspect.getattr_static(type(self), method, None), filterable):
            raise ConfigurationError(f'"{method}" of {type(self).__name__} is not filterable')
        self.__dict__.setdefault(CHAINS, {})[method] = layer

    def base(self, method: str) -> Callable:
        """
        :return: the unfiltered implementation of `method`, bound to this instance
        """
        descriptor = inspect.getattr_static(type(self), method)
        return descriptor.func.__get__(self, type(self))
