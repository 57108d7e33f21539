from __future__ import annotations

from dataclasses import dataclass

DEFAULT_MARKERS_MODULE = "inject_markers"
DEFAULT_MARKERS_HINT_NAME = "inject_markers.py"
DEFAULT_EXTENSION_HINT_NAME = "generated_services_extension.py"
DEFAULT_TRIGGER_PREFIX = "discover_in_"
DEFAULT_NAME_PLACEHOLDER = "_"
DEFAULT_REGISTRY_MODULE = "wiregen.services"
AUTO_GENERATED_HEADER = "# <auto-generated />"


@dataclass(frozen=True, slots=True, kw_only=True)
class GeneratorOptions:
    """Configure names and placement used by ``ServicesGenerator``.

    Defaults match the names used in the documentation. Override them only when
    the generated modules would clash with existing modules of the project.
    """

    markers_module: str = DEFAULT_MARKERS_MODULE
    """Importable module name of the generated marker definitions."""
    markers_hint_name: str = DEFAULT_MARKERS_HINT_NAME
    """File name of the generated marker definitions."""
    extension_hint_name: str = DEFAULT_EXTENSION_HINT_NAME
    """File name of the generated registration module."""
    trigger_prefix: str = DEFAULT_TRIGGER_PREFIX
    """Prefix of the generated entry point name.

    The anchor call site is the first call to ``<trigger_prefix><safe assembly
    name>``, for example ``discover_in_My_App``. Other calls that merely start
    with the prefix are ignored.
    """
    name_placeholder: str = DEFAULT_NAME_PLACEHOLDER
    """Replacement for non-alphanumeric characters of the assembly name."""
    registry_module: str = DEFAULT_REGISTRY_MODULE
    """Module that generated code imports ``ServiceRegistry`` and ``ServiceLifetime`` from."""

    def __post_init__(self) -> None:
        if not self.name_placeholder or not all(
            char.isalnum() or char == "_" for char in self.name_placeholder
        ):
            msg = f"name_placeholder must be a non-empty identifier fragment, got {self.name_placeholder!r}"
            raise ValueError(msg)
        if not self.trigger_prefix.isidentifier():
            msg = f"trigger_prefix must be an identifier, got {self.trigger_prefix!r}"
            raise ValueError(msg)


__all__ = [
    "AUTO_GENERATED_HEADER",
    "DEFAULT_EXTENSION_HINT_NAME",
    "DEFAULT_MARKERS_HINT_NAME",
    "DEFAULT_MARKERS_MODULE",
    "DEFAULT_NAME_PLACEHOLDER",
    "DEFAULT_REGISTRY_MODULE",
    "DEFAULT_TRIGGER_PREFIX",
    "GeneratorOptions",
]
