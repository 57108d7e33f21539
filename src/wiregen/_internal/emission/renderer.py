from __future__ import annotations

import logging

from jinja2 import Environment, StrictUndefined, Template

from wiregen._internal.emission.planner import EmissionPlan
from wiregen._internal.emission.templates import (
    BODY_TEMPLATE,
    GLOBAL_MODULE_TEMPLATE,
    IMPORTS_TEMPLATE,
    MARKERS_MODULE_TEMPLATE,
    NAMESPACED_MODULE_TEMPLATE,
)
from wiregen.options import GeneratorOptions

logger = logging.getLogger(__name__)


class RegistrationsTemplateRenderer:
    """Renderer for generated registration and marker modules."""

    def __init__(self, *, options: GeneratorOptions) -> None:
        self._options = options
        self._env = Environment(
            autoescape=False,  # noqa: S701
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self._markers_template = self._template(MARKERS_MODULE_TEMPLATE)
        self._imports_template = self._template(IMPORTS_TEMPLATE)
        self._body_template = self._template(BODY_TEMPLATE)
        self._global_module_template = self._template(GLOBAL_MODULE_TEMPLATE)
        self._namespaced_module_template = self._template(NAMESPACED_MODULE_TEMPLATE)

    def get_markers_code(self) -> str:
        """Render the marker definitions module."""
        return self._finish(self._markers_template.render(registry_module=self._options.registry_module))

    def get_registrations_code(self, *, plan: EmissionPlan) -> str:
        """Render the registration module for ``plan``.

        The namespaced template is used when the plan names a package; the
        global template otherwise. Both share the imports and body blocks.

        Args:
            plan: Registration records and naming of the module.

        """
        self._log_plan(plan=plan)
        body_block = self._body_template.render(
            assembly_name=plan.assembly_name,
            entry_point_name=plan.entry_point_name,
            discoverer_name=plan.discoverer_name,
            parameter_name=plan.parameter_name,
            records=plan.records,
        ).strip()

        if plan.namespace is None:
            imports_block = self._render_imports(imports=plan.imports)
            return self._finish(
                self._global_module_template.render(
                    imports_block=imports_block,
                    body_block=body_block,
                ),
            )

        imports_block = self._render_imports(
            imports=tuple(module for module in plan.imports if module != plan.namespace),
        )
        return self._finish(
            self._namespaced_module_template.render(
                namespace=plan.namespace,
                imports_block=imports_block,
                body_block=body_block,
            ),
        )

    def _render_imports(self, *, imports: tuple[str, ...]) -> str:
        return self._imports_template.render(
            imports=imports,
            registry_module=self._options.registry_module,
        ).strip()

    def _log_plan(self, *, plan: EmissionPlan) -> None:
        logger.info(
            "Registration codegen: assembly=%s entry_point=%s placement=%s record_count=%d import_count=%d",
            plan.assembly_name,
            plan.entry_point_name,
            plan.namespace or "<global>",
            len(plan.records),
            len(plan.imports),
        )

    def _template(self, source: str) -> Template:
        return self._env.from_string(source)

    @staticmethod
    def _finish(text: str) -> str:
        return f"{text.rstrip()}\n"
