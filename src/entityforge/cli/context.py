"""CLI context management for the host application and shared state."""

import importlib
import os
from dataclasses import dataclass, field

from entityforge import EntityForge
from entityforge.exceptions import ConfigurationError
from entityforge.query import DEFAULT_PAGE_SIZE


def get_app_path(app_path: str | None) -> str:
    """Resolve the host application import path.

    Priority:
    1. Explicit --app argument
    2. ENTITYFORGE_APP environment variable

    Raises:
        ConfigurationError: If neither is set
    """
    if app_path:
        return app_path
    if env_path := os.getenv("ENTITYFORGE_APP"):
        return env_path
    raise ConfigurationError(
        "No host application given. Pass --app module:attribute or set ENTITYFORGE_APP.",
        {"option": "--app", "envvar": "ENTITYFORGE_APP"},
    )


def get_page_size(page_size: int | None) -> int:
    """Resolve the default page size from CLI arg, environment variable, or default."""
    if page_size:
        return page_size
    if env_size := os.getenv("ENTITYFORGE_PAGE_SIZE"):
        return int(env_size)
    return DEFAULT_PAGE_SIZE


def load_app(app_path: str) -> EntityForge:
    """Import a host application given as ``module:attribute``.

    The attribute is either an EntityForge instance or a callable returning one.

    Raises:
        ConfigurationError: If the path is malformed or does not yield an EntityForge
    """
    module_name, _, attribute = app_path.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(
            f"Invalid application path '{app_path}'. Use the form module:attribute.",
            {"app": app_path},
        )

    module = importlib.import_module(module_name)
    target = getattr(module, attribute, None)
    if target is None:
        raise ConfigurationError(
            f"Module '{module_name}' has no attribute '{attribute}'.", {"app": app_path}
        )
    forge = target if isinstance(target, EntityForge) else target()
    if not isinstance(forge, EntityForge):
        raise ConfigurationError(
            f"'{app_path}' did not produce an EntityForge instance.", {"app": app_path}
        )
    return forge


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Loads the host application lazily and holds output preferences.
    """

    app_path: str | None
    json_output: bool
    page_size: int = DEFAULT_PAGE_SIZE
    _forge: EntityForge | None = field(default=None, init=False, repr=False)

    def get_forge(self) -> EntityForge:
        """Get or load the host application's EntityForge.

        Returns:
            EntityForge instance
        """
        if self._forge is None:
            self._forge = load_app(get_app_path(self.app_path))
        return self._forge
