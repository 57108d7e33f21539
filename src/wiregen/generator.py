from __future__ import annotations

import logging

from wiregen._internal.classification import ClassifiedService, ServiceClassifier
from wiregen._internal.emission.planner import EmissionPlanner, entry_point_name
from wiregen._internal.emission.renderer import RegistrationsTemplateRenderer
from wiregen._internal.semantic import AnchorLocation, SemanticModel
from wiregen.compilation import Compilation
from wiregen.exceptions import WiregenMissingAssemblyNameError
from wiregen.options import GeneratorOptions
from wiregen.sinks import GeneratedSource, GenerationOutput, SourceSink

logger = logging.getLogger(__name__)


class ServicesGenerator:
    """Generate service registration modules for a compilation.

    The generator keeps no state between passes: every call to ``generate``
    rebuilds its view of the compilation from scratch.

    Examples:
        .. code-block:: python

            generator = ServicesGenerator()
            sink = DirectorySink("src")
            generator.execute(Compilation.from_directory("src", assembly_name="my.app"), sink)

    """

    def __init__(self, *, options: GeneratorOptions | None = None) -> None:
        self.options = options or GeneratorOptions()
        self._renderer = RegistrationsTemplateRenderer(options=self.options)
        self._markers_source = GeneratedSource(
            hint_name=self.options.markers_hint_name,
            text=self._renderer.get_markers_code(),
        )

    @property
    def markers_source(self) -> GeneratedSource:
        """Return the marker definitions module, identical for every pass."""
        return self._markers_source

    def install_static_definitions(self, sink: SourceSink) -> None:
        """Publish the marker definitions module to ``sink``.

        Args:
            sink: Destination of the generated module.

        """
        sink.add_source(self._markers_source)

    def generate(self, compilation: Compilation) -> GenerationOutput | None:
        """Run discovery and emission over ``compilation``.

        Returns ``None`` when no class was classified for registration.

        Args:
            compilation: Snapshot of the sources to discover services in.

        Raises:
            WiregenUnresolvableSymbolError: If a marker-decorated class cannot be
                addressed from the generated module.
            WiregenMissingAssemblyNameError: If services were found but the
                compilation has no assembly name.

        """
        model = SemanticModel(compilation)
        services = ServiceClassifier(model, options=self.options).classify()
        anchor = None if not compilation.assembly_name else self._find_anchor(model, compilation.assembly_name)
        self._log_pass(compilation=compilation, services=services, anchor=anchor)
        if not services:
            return None
        if not compilation.assembly_name:
            msg = "Compilation has no assembly name; cannot name the generated entry points."
            raise WiregenMissingAssemblyNameError(msg)

        plan = EmissionPlanner(options=self.options).build(
            assembly_name=compilation.assembly_name,
            services=services,
            anchor=anchor,
        )
        text = self._renderer.get_registrations_code(plan=plan)
        return GenerationOutput(
            sources=(
                GeneratedSource(
                    hint_name=self.options.extension_hint_name,
                    text=text,
                    package=plan.namespace,
                ),
            ),
        )

    def execute(self, compilation: Compilation, sink: SourceSink) -> GenerationOutput | None:
        """Install the marker definitions, then generate and publish registrations.

        The registration module is rendered completely before anything is
        handed to ``sink``; when generation fails only the marker definitions
        have been published.

        Args:
            compilation: Snapshot of the sources to discover services in.
            sink: Destination of the generated modules.

        """
        self.install_static_definitions(sink)
        output = self.generate(compilation)
        if output is not None:
            for source in output:
                sink.add_source(source)
        return output

    def _find_anchor(self, model: SemanticModel, assembly_name: str) -> AnchorLocation | None:
        invocation = model.first_trigger_invocation(entry_point_name(assembly_name, options=self.options))
        if invocation is None:
            return None
        return model.anchor_for(invocation)

    @staticmethod
    def _log_pass(
        *,
        compilation: Compilation,
        services: tuple[ClassifiedService, ...],
        anchor: AnchorLocation | None,
    ) -> None:
        logger.info(
            "Service discovery: assembly=%s source_count=%d service_count=%d contract_count=%d anchor=%s",
            compilation.assembly_name,
            len(compilation.sources),
            len(services),
            sum(len(service.contracts) for service in services),
            "<none>" if anchor is None else f"{anchor.module}.{anchor.function}",
        )
