from __future__ import annotations


class WiregenError(Exception):
    """Represent a base class for all wiregen-specific failures.

    Catch this type when you want to handle any generation failure without
    matching each concrete exception class individually.
    """


class WiregenUnresolvableSymbolError(WiregenError):
    """Signal a marker-decorated class that has no resolvable declaration.

    Raised by ``ServicesGenerator.generate`` when a class carries one of the
    injectability markers but cannot be addressed from outside its module, for
    example a class declared inside a function body. The whole pass aborts and
    no registration module is produced.

    Typical fix is moving the class to module level (or nesting it only inside
    other classes) so the generated module can import it.
    """

    def __init__(self, *, class_name: str, path: str, lineno: int) -> None:
        self.class_name = class_name
        self.path = path
        self.lineno = lineno
        super().__init__(
            f"Cannot resolve marker-decorated class '{class_name}' declared at {path}:{lineno}. "
            "Marked classes must be declared at module level or nested in other classes.",
        )


class WiregenMissingAssemblyNameError(WiregenError):
    """Signal a compilation without an assembly-like name.

    Raised by ``ServicesGenerator.generate`` when services were classified but
    ``Compilation.assembly_name`` is empty. The name drives the generated
    ``discover_in_<name>`` entry point and ``<name>Discoverer`` class, so there
    is no safe default.

    Typical fix is passing ``assembly_name=...`` when building the compilation.
    """


class WiregenInvalidCompilationError(WiregenError):
    """Signal invalid input while building a compilation snapshot.

    Raised by ``Compilation.from_directory`` and
    ``ModuleReference.from_directory`` when the given root does not exist or is
    not a directory.
    """
