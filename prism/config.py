# Configuration defaults live on the PRISM class (prism_init.py)
# Options that aren't set there are looked up in the environment
import os
import logging
import prism
from typing import Any, Optional


def get_config(option: str) -> Optional[Any]:
    """Retrieve a configuration parameter
    :param option: configuration parameter
    :return: configuration value
    """
    result = getattr(prism.PRISM, option, None)
    if result is not None:
        return result
    return os.environ.get(option, None)


def config_value(value: Optional[Any], option: str) -> Optional[Any]:
    """
    Return `value` if it was given explicitly, fall back to the configured `option` otherwise
    """
    if value is not None:
        return value
    return get_config(option)


def is_debug() -> bool:
    """
    We use the loglevel to check whether we're running in debug mode
    :return: whether the app is in debug mode
    :rtype: Boolean
    """
    return prism.log.getEffectiveLevel() < logging.INFO
