"""
Request-scoped engine context.

Everything one request needs besides the plans themselves: the store
session, the requesting user, a fixed "now", configuration, a parameter
namer and a memo for expensive lookups that do not change during the
request. Nothing here is shared between requests.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from marking_tree.model import Module
from marking_tree.query.sql import ParamNamer
from marking_tree.settings import MarkingSettings, settings as default_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EngineContext:

    def __init__(
        self,
        db: Session,
        user_id: int,
        now: Optional[int] = None,
        config: Optional[MarkingSettings] = None,
    ):
        self.db = db
        self.user_id = user_id
        self.now = int(time.time()) if now is None else now
        self.settings = config or default_settings
        self.param_name = ParamNamer()
        self._memo: Dict[Tuple[int, str], Any] = {}

    def memoize(self, key: str, compute: Callable[[], T]) -> T:
        """Compute once per (user, key) for the lifetime of this context."""
        memo_key = (self.user_id, key)
        if memo_key not in self._memo:
            self._memo[memo_key] = compute()
        return self._memo[memo_key]

    def invalidate(self) -> None:
        self._memo.clear()

    def enabled_modules(self) -> Dict[str, int]:
        """Module name -> module id for modules enabled site-wide."""
        def load():
            rows = self.db.execute(
                select(Module.name, Module.id).where(Module.visible == 1)
            ).all()
            return {name: module_id for name, module_id in rows}

        return self.memoize("enabled_modules", load)

    def module_id(self, name: str) -> Optional[int]:
        return self.enabled_modules().get(name)
