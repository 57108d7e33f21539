"""Hatch build hook that generates service registrations before a build."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from hatchling.builders.hooks.plugin.interface import BuildHookInterface
from hatchling.plugin import hookimpl

from wiregen.compilation import Compilation, ModuleReference
from wiregen.generator import ServicesGenerator
from wiregen.sinks import DirectorySink

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_ROOT = "src"


class WiregenBuildHook(BuildHookInterface):
    """Run ``ServicesGenerator`` over the project sources before building.

    Configure it in ``pyproject.toml``:

    .. code-block:: toml

        [tool.hatch.build.hooks.wiregen]
        source-root = "src"
        assembly-name = "my.app"

        [tool.hatch.build.hooks.wiregen.references]
        shared = "../shared/src"

    Generated modules are written into the source root, so the build picks
    them up with the rest of the package files.
    """

    PLUGIN_NAME = "wiregen"

    def initialize(self, version: str, build_data: dict[str, Any]) -> None:
        """Generate the marker and registration modules into the source root."""
        root = Path(self.root)
        source_root = root / self.config.get("source-root", DEFAULT_SOURCE_ROOT)
        assembly_name = self.config.get("assembly-name") or self.metadata.name
        references = tuple(
            ModuleReference.from_directory(root / path, name=name)
            for name, path in self.config.get("references", {}).items()
        )
        compilation = Compilation.from_directory(
            source_root,
            assembly_name=assembly_name,
            references=references,
        )
        output = ServicesGenerator().execute(compilation, DirectorySink(source_root))
        logger.info(
            "wiregen build hook (%s, %s): generated %d registration module(s) in %s",
            self.target_name,
            version,
            0 if output is None else len(output.sources),
            source_root,
        )


@hookimpl
def hatch_register_build_hook() -> type[BuildHookInterface]:
    return WiregenBuildHook
