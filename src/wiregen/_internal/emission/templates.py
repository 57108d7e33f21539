from textwrap import dedent

MARKERS_MODULE_TEMPLATE = dedent(
    '''
    # <auto-generated />
    """Injectability markers recognised by wiregen.

    Decorate a class with one of these markers to have it registered by the
    generated ``discover_in_<assembly>`` entry point. The markers return the
    decorated class unchanged.
    """

    from __future__ import annotations

    from typing import Any, TypeVar

    from {{ registry_module }} import ServiceLifetime

    __all__ = ["ServiceLifetime", "inject", "inject_scoped", "inject_singleton", "inject_transient"]

    _C = TypeVar("_C", bound=type)


    def inject(lifetime: Any = ServiceLifetime.SINGLETON) -> Any:
        """Register the class with the given lifetime, ``SINGLETON`` by default."""
        if isinstance(lifetime, type):
            return lifetime
        return _mark


    def inject_singleton(cls: Any = None, /) -> Any:
        """Register the class as a singleton."""
        return _mark if cls is None else cls


    def inject_scoped(cls: Any = None, /) -> Any:
        """Register the class as a scoped service."""
        return _mark if cls is None else cls


    def inject_transient(cls: Any = None, /) -> Any:
        """Register the class as a transient service."""
        return _mark if cls is None else cls


    def _mark(cls: _C) -> _C:
        return cls
    ''',
).strip()

IMPORTS_TEMPLATE = dedent(
    """
    {% for module in imports %}
    import {{ module }}
    {% endfor %}
    from {{ registry_module }} import ServiceRegistry
    """,
).strip()

BODY_TEMPLATE = dedent(
    '''
    def {{ entry_point_name }}({{ parameter_name }}: ServiceRegistry) -> None:
        """Register every service discovered in ``{{ assembly_name }}`` on ``{{ parameter_name }}``."""
        _discover({{ parameter_name }})


    def _discover({{ parameter_name }}: ServiceRegistry) -> None:
    {% for record in records %}
        {{ parameter_name }}.{{ record.operation.value }}({{ record.arguments | join(", ") }})
    {% endfor %}


    class {{ discoverer_name }}:
        """Stable call target for bootstrapping code that looks entry points up by class."""

        @staticmethod
        def discover({{ parameter_name }}: ServiceRegistry) -> None:
            _discover({{ parameter_name }})
    ''',
).strip()

GLOBAL_MODULE_TEMPLATE = dedent(
    '''
    # <auto-generated />
    """Service registrations discovered by wiregen."""

    from __future__ import annotations

    {{ imports_block }}


    {{ body_block }}
    ''',
).strip()

NAMESPACED_MODULE_TEMPLATE = dedent(
    '''
    # <auto-generated />
    """Service registrations discovered by wiregen for the ``{{ namespace }}`` package."""

    from __future__ import annotations

    import {{ namespace }}  # noqa: F401
    {{ imports_block }}


    {{ body_block }}
    ''',
).strip()
