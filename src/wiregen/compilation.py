from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from wiregen.exceptions import WiregenInvalidCompilationError
from wiregen.options import AUTO_GENERATED_HEADER

_PACKAGE_INIT = "__init__"


@dataclass(frozen=True, slots=True)
class SourceFile:
    """A single Python source of a compilation."""

    path: str
    """Display path used in log messages and errors."""
    text: str
    module_name: str | None
    """Importable dotted module name, or ``None`` when the path cannot be imported."""

    @property
    def is_package(self) -> bool:
        return Path(self.path).stem == _PACKAGE_INIT

    @property
    def package(self) -> str | None:
        """Return the package that relative imports of this module resolve against."""
        if self.module_name is None:
            return None
        if self.is_package:
            return self.module_name
        package, _, _ = self.module_name.rpartition(".")
        return package or None


@dataclass(frozen=True, slots=True)
class ModuleReference:
    """A set of sources referenced by a compilation but not generated for.

    Classes declared here take part in base-class resolution and contract
    discovery. They are never registration candidates themselves.
    """

    name: str
    """Module identity compared by the contract visibility rule."""
    sources: tuple[SourceFile, ...] = ()

    @classmethod
    def from_directory(cls, root: str | Path, *, name: str) -> ModuleReference:
        """Collect every Python file under ``root`` into a reference.

        Args:
            root: Directory that acts as the import root of the reference.
            name: Module identity of the reference.

        Raises:
            WiregenInvalidCompilationError: If ``root`` is not a directory.

        """
        return cls(name=name, sources=collect_sources(root))


@dataclass(frozen=True, slots=True)
class Compilation:
    """Read-only snapshot of the sources a generation pass runs over.

    Sources are processed in the given order, which fixes the order of the
    generated registrations.
    """

    assembly_name: str | None
    """Assembly-like identity used to name generated entry points."""
    sources: tuple[SourceFile, ...] = ()
    references: tuple[ModuleReference, ...] = field(default=())

    @classmethod
    def from_directory(
        cls,
        root: str | Path,
        *,
        assembly_name: str | None,
        references: Iterable[ModuleReference] = (),
    ) -> Compilation:
        """Build a compilation from every Python file under ``root``.

        Files are sorted by relative path. Files that start with the
        ``# <auto-generated />`` header are skipped so previous outputs do not
        feed the next pass.

        Args:
            root: Directory that acts as the import root, for example ``src``.
            assembly_name: Identity used to name the generated entry points.
            references: Referenced module sets visible to type resolution.

        Raises:
            WiregenInvalidCompilationError: If ``root`` is not a directory.

        """
        return cls(
            assembly_name=assembly_name,
            sources=collect_sources(root),
            references=tuple(references),
        )


def collect_sources(root: str | Path) -> tuple[SourceFile, ...]:
    root_path = Path(root)
    if not root_path.is_dir():
        msg = f"Source root '{root_path}' is not a directory."
        raise WiregenInvalidCompilationError(msg)

    sources: list[SourceFile] = []
    for path in sorted(root_path.rglob("*.py"), key=lambda item: item.relative_to(root_path).as_posix()):
        relative = path.relative_to(root_path)
        text = path.read_text(encoding="utf-8")
        if text.startswith(AUTO_GENERATED_HEADER):
            continue
        sources.append(
            SourceFile(
                path=relative.as_posix(),
                text=text,
                module_name=module_name_for_path(relative),
            ),
        )
    return tuple(sources)


def module_name_for_path(relative: Path) -> str | None:
    """Return the dotted module name for a path relative to an import root."""
    parts = list(relative.with_suffix("").parts)
    if parts and parts[-1] == _PACKAGE_INIT:
        parts.pop()
    if not parts or not all(part.isidentifier() for part in parts):
        return None
    return ".".join(parts)


__all__ = ["Compilation", "ModuleReference", "SourceFile", "collect_sources", "module_name_for_path"]
