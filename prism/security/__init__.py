# -*- coding: utf-8 -*-

"""Token authentication.

    security = SecurityPlugin(api, key=os.environ["PRISM_KEY"])
    security.register_backend(ResourceBackend(users))
"""

from .backend import Backend, Claims
from .create_token import CreateToken
from .plugin import SecurityPlugin
from .resource import ResourceBackend

__all__ = ("Backend", "Claims", "CreateToken", "SecurityPlugin", "ResourceBackend")
