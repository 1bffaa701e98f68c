"""
Name → tool lookup for the analysis tools.

Tools are found, not listed: discover() imports every module under a
package and instantiates each concrete MusicalTool defined there, so a
new file in tools/music/ shows up in GET /tools/list without wiring.
"""

import importlib
import inspect
import logging
import pkgutil
from collections.abc import Iterator
from types import ModuleType

from tools.base import MusicalTool

logger = logging.getLogger(__name__)


def _tool_classes(module: ModuleType) -> Iterator[type[MusicalTool]]:
    """Concrete MusicalTool subclasses defined in (not imported into) module."""
    for _attr, obj in inspect.getmembers(module, inspect.isclass):
        if obj.__module__ != module.__name__:
            continue
        if issubclass(obj, MusicalTool) and not inspect.isabstract(obj):
            yield obj


class ToolRegistry:
    """
    Tools keyed by their name property, in registration order.

        registry = ToolRegistry()
        registry.discover()
        result = registry.get("estimate_tempo")(samples=energy, tick_rate_hz=60.0)
    """

    def __init__(self):
        self._tools: dict[str, MusicalTool] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def register(self, tool: MusicalTool) -> None:
        """Add tool; a second tool with the same name raises ValueError."""
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> MusicalTool | None:
        return self._tools.get(name)

    def list_tools(self) -> list[dict]:
        """Schema dicts for every tool, as served by GET /tools/list."""
        return [tool.to_dict() for tool in self._tools.values()]

    def discover(self, package_name: str = "tools") -> int:
        """
        Import package_name recursively and register the tools it defines.

        A module that fails to import is logged and skipped; the rest of
        the package is still scanned.

        Returns:
            Number of tools registered by this call (0 when package_name
            is missing or is a plain module)
        """
        try:
            package = importlib.import_module(package_name)
        except ImportError:
            logger.warning("Tool package %r not importable", package_name)
            return 0

        search_path = getattr(package, "__path__", None)
        if search_path is None:
            return 0

        registered = 0
        for module_info in pkgutil.walk_packages(search_path, prefix=f"{package_name}."):
            try:
                module = importlib.import_module(module_info.name)
            except ImportError as exc:
                logger.warning("Skipping tool module %s: %s", module_info.name, exc)
                continue

            for tool_cls in _tool_classes(module):
                self.register(tool_cls())
                registered += 1

        logger.debug("Registered %d tool(s) from %s: %s", registered, package_name, self.names)
        return registered


_registry: ToolRegistry | None = None


def get_registry() -> ToolRegistry:
    """Process-wide registry, populated from tools/ on first use."""
    global _registry
    if _registry is None:
        _registry = ToolRegistry()
        _registry.discover()
    return _registry
