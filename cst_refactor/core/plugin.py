"""
Base refactor plugin interface.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .session import RefactorSession


class RefactorPlugin(ABC):
    """
    Extension bound to one session.

    Installed with ``RefactorSession.use(PluginClass)``: the session builds
    the plugin with itself and calls ``register()`` once.
    """

    def __init__(self, session: "RefactorSession") -> None:
        self.session = session

    @abstractmethod
    def register(self) -> None:
        """Attach the plugin's operations to the session."""
        pass
