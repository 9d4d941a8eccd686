"""
Application collaborator consumed by the HTTP component.

The component only asks the hosting application for its base directory and
for the type and id of the current server process. Anything providing those
methods will do.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class Application(Protocol):
    """Interface the HTTP component expects from its owning application."""

    def get_base(self) -> str | Path:
        """Application base directory."""
        ...

    def get_server_type(self) -> str:
        """Server type of this process (e.g. "connector")."""
        ...

    def get_server_id(self) -> str:
        """Server id of this process (e.g. "connector-2")."""
        ...


@dataclass(frozen=True)
class StaticApplication:
    """
    Application with fixed identity, for scripts and tests.

    Example:
        app = StaticApplication(base="/srv/game", server_type="connector",
                                server_id="connector-0")
    """

    base: str | Path
    server_type: str
    server_id: str

    def get_base(self) -> str | Path:
        return self.base

    def get_server_type(self) -> str:
        return self.server_type

    def get_server_id(self) -> str:
        return self.server_id
