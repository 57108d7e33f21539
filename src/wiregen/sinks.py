from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GeneratedSource:
    """A generated module handed to a ``SourceSink``."""

    hint_name: str
    """Fixed file name of the generated module."""
    text: str
    package: str | None = None
    """Package the module is placed in, or ``None`` for the source root."""

    @property
    def path(self) -> str:
        """Return the POSIX path of the module relative to the source root."""
        if self.package is None:
            return self.hint_name
        return str(PurePosixPath(*self.package.split("."), self.hint_name))


@dataclass(frozen=True, slots=True)
class GenerationOutput:
    """The complete text artifact of one generation pass."""

    sources: tuple[GeneratedSource, ...]

    def as_mapping(self) -> dict[str, str]:
        return {source.path: source.text for source in self.sources}

    def __iter__(self) -> Iterator[GeneratedSource]:
        return iter(self.sources)


class SourceSink(Protocol):
    """Destination for generated modules."""

    def add_source(self, source: GeneratedSource) -> None: ...


class InMemorySink:
    """Collect generated modules in insertion order."""

    def __init__(self) -> None:
        self._sources: dict[str, GeneratedSource] = {}

    def add_source(self, source: GeneratedSource) -> None:
        self._sources[source.path] = source

    @property
    def files(self) -> Mapping[str, str]:
        return {path: source.text for path, source in self._sources.items()}

    def __contains__(self, path: object) -> bool:
        return path in self._sources

    def __getitem__(self, path: str) -> str:
        return self._sources[path].text


class DirectorySink:
    """Write generated modules below a source root, creating package directories."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def add_source(self, source: GeneratedSource) -> None:
        target = self.root.joinpath(*PurePosixPath(source.path).parts)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(source.text, encoding="utf-8")
        logger.debug("Wrote generated module %s", target)


__all__ = ["DirectorySink", "GeneratedSource", "GenerationOutput", "InMemorySink", "SourceSink"]
