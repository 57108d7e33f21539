from wiregen.compilation import Compilation, ModuleReference, SourceFile
from wiregen.exceptions import (
    WiregenError,
    WiregenInvalidCompilationError,
    WiregenMissingAssemblyNameError,
    WiregenUnresolvableSymbolError,
)
from wiregen.generator import ServicesGenerator
from wiregen.options import GeneratorOptions
from wiregen.services import ServiceCollection, ServiceDescriptor, ServiceLifetime, ServiceRegistry
from wiregen.sinks import DirectorySink, GeneratedSource, GenerationOutput, InMemorySink, SourceSink

__all__ = [
    "Compilation",
    "DirectorySink",
    "GeneratedSource",
    "GenerationOutput",
    "GeneratorOptions",
    "InMemorySink",
    "ModuleReference",
    "ServiceCollection",
    "ServiceDescriptor",
    "ServiceLifetime",
    "ServiceRegistry",
    "ServicesGenerator",
    "SourceFile",
    "SourceSink",
    "WiregenError",
    "WiregenInvalidCompilationError",
    "WiregenMissingAssemblyNameError",
    "WiregenUnresolvableSymbolError",
]
