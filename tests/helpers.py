from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from textwrap import dedent

from wiregen.compilation import Compilation, ModuleReference, SourceFile, module_name_for_path


def source(path: str, text: str) -> SourceFile:
    return SourceFile(path=path, text=dedent(text).lstrip(), module_name=module_name_for_path(Path(path)))


def compilation_from_files(
    files: Mapping[str, str],
    *,
    assembly_name: str | None = "My.App",
    references: Iterable[ModuleReference] = (),
) -> Compilation:
    return Compilation(
        assembly_name=assembly_name,
        sources=tuple(source(path, text) for path, text in files.items()),
        references=tuple(references),
    )


def reference_from_files(name: str, files: Mapping[str, str]) -> ModuleReference:
    return ModuleReference(name=name, sources=tuple(source(path, text) for path, text in files.items()))


def write_files(root: Path, files: Mapping[str, str]) -> None:
    for path, text in files.items():
        target = root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(dedent(text).lstrip(), encoding="utf-8")
