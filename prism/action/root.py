from typing import Any, Dict, Optional

from . import Action, ActionKind, Params
from ..document import Document


class Root(Action):
    """
    The entry point of the api. Its document is empty: the other actions add links and forms to it
    with filters, so it advertises the whole api.
    """

    kind = ActionKind.ROOT
    method = "GET"
    path = ""

    async def handle(self, params: Params, request: Any = None) -> Dict[str, Any]:
        return {}

    async def decorate(self, doc: Document, params: Optional[Params] = None, request: Any = None) -> Document:
        return doc
