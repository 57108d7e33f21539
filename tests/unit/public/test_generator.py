from __future__ import annotations

import importlib
from pathlib import Path

import pytest

from tests.helpers import compilation_from_files, write_files
from wiregen import (
    Compilation,
    DirectorySink,
    GeneratorOptions,
    InMemorySink,
    ServiceCollection,
    ServiceLifetime,
    ServicesGenerator,
    WiregenMissingAssemblyNameError,
    WiregenUnresolvableSymbolError,
)

_MARKED_SERVICE = """
    from inject_markers import inject_transient


    @inject_transient
    class Clock:
        pass
"""


def test_empty_compilation_publishes_only_marker_definitions(
    generator: ServicesGenerator,
    sink: InMemorySink,
) -> None:
    compilation = compilation_from_files({"app.py": "class Plain:\n    pass\n"})

    output = generator.execute(compilation, sink)

    assert output is None
    assert list(sink.files) == ["inject_markers.py"]
    assert sink["inject_markers.py"] == generator.markers_source.text


def test_install_static_definitions_does_not_need_a_compilation(
    generator: ServicesGenerator,
    sink: InMemorySink,
) -> None:
    generator.install_static_definitions(sink)

    assert "inject_markers.py" in sink


def test_missing_assembly_name_aborts_without_registration_module(
    generator: ServicesGenerator,
    sink: InMemorySink,
) -> None:
    compilation = compilation_from_files({"app.py": _MARKED_SERVICE}, assembly_name=None)

    with pytest.raises(WiregenMissingAssemblyNameError):
        generator.execute(compilation, sink)

    assert list(sink.files) == ["inject_markers.py"]


def test_missing_assembly_name_is_ignored_when_nothing_is_classified(generator: ServicesGenerator) -> None:
    compilation = compilation_from_files({"app.py": "x = 1\n"}, assembly_name=None)

    assert generator.generate(compilation) is None


def test_unresolvable_marked_class_aborts_without_registration_module(
    generator: ServicesGenerator,
    sink: InMemorySink,
) -> None:
    compilation = compilation_from_files(
        {
            "app.py": _MARKED_SERVICE,
            "factory.py": """
                from inject_markers import inject_singleton


                def make():
                    @inject_singleton
                    class Hidden:
                        pass
            """,
        },
    )

    with pytest.raises(WiregenUnresolvableSymbolError):
        generator.execute(compilation, sink)

    assert list(sink.files) == ["inject_markers.py"]


def test_options_rename_generated_modules_and_entry_points(sink: InMemorySink) -> None:
    options = GeneratorOptions(
        markers_module="di_markers",
        markers_hint_name="di_markers.py",
        extension_hint_name="di_registrations.py",
        trigger_prefix="register_",
    )
    compilation = compilation_from_files(
        {
            "app.py": """
                from di_markers import inject_scoped


                @inject_scoped
                class Session:
                    pass
            """,
        },
        assembly_name="Shop",
    )

    ServicesGenerator(options=options).execute(compilation, sink)

    assert list(sink.files) == ["di_markers.py", "di_registrations.py"]
    assert "def register_Shop(services: ServiceRegistry) -> None:" in sink["di_registrations.py"]
    assert "services.add_scoped(app.Session)" in sink["di_registrations.py"]


def test_invalid_options_are_rejected() -> None:
    with pytest.raises(ValueError, match="name_placeholder"):
        GeneratorOptions(name_placeholder=".")
    with pytest.raises(ValueError, match="trigger_prefix"):
        GeneratorOptions(trigger_prefix="discover-in")


@pytest.mark.usefixtures("isolated_modules")
def test_generated_module_registers_services_when_imported(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    write_files(
        tmp_path,
        {
            "execapp/__init__.py": "",
            "execapp/contracts.py": """
                from typing import Protocol


                class Sender(Protocol):
                    def send(self, message: str) -> None: ...


                class _Internal(Protocol):
                    pass
            """,
            "execapp/services.py": """
                from inject_markers import ServiceLifetime, inject, inject_singleton

                from execapp.contracts import Sender, _Internal


                @inject_singleton
                class EmailSender(Sender, _Internal):
                    def send(self, message: str) -> None:
                        pass


                @inject(ServiceLifetime.SCOPED)
                class UnitOfWork:
                    pass
            """,
        },
    )
    ServicesGenerator().execute(
        Compilation.from_directory(tmp_path, assembly_name="Exec.App"),
        DirectorySink(tmp_path),
    )
    monkeypatch.syspath_prepend(str(tmp_path))

    registrations = importlib.import_module("generated_services_extension")
    contracts = importlib.import_module("execapp.contracts")
    services_module = importlib.import_module("execapp.services")
    collection = ServiceCollection()
    registrations.discover_in_Exec_App(collection)

    assert [(d.service, d.implementation, d.lifetime) for d in collection] == [
        (services_module.EmailSender, services_module.EmailSender, ServiceLifetime.SINGLETON),
        (contracts.Sender, services_module.EmailSender, ServiceLifetime.SINGLETON),
        (contracts._Internal, services_module.EmailSender, ServiceLifetime.SINGLETON),
        (services_module.UnitOfWork, services_module.UnitOfWork, ServiceLifetime.SCOPED),
    ]

    discovered = ServiceCollection()
    registrations.Exec_AppDiscoverer.discover(discovered)
    assert discovered.descriptors == collection.descriptors


@pytest.mark.usefixtures("isolated_modules")
def test_namespaced_module_is_written_into_anchor_package(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    write_files(
        tmp_path,
        {
            "nsapp/__init__.py": "",
            "nsapp/clock.py": _MARKED_SERVICE,
            "nsapp/main.py": """
                from wiregen import ServiceCollection

                from nsapp.generated_services_extension import discover_in_nsapp


                def build() -> ServiceCollection:
                    services = ServiceCollection()
                    discover_in_nsapp(services)
                    return services
            """,
        },
    )
    ServicesGenerator().execute(
        Compilation.from_directory(tmp_path, assembly_name="nsapp"),
        DirectorySink(tmp_path),
    )
    monkeypatch.syspath_prepend(str(tmp_path))

    assert (tmp_path / "nsapp" / "generated_services_extension.py").is_file()
    assert (tmp_path / "inject_markers.py").is_file()
    services = importlib.import_module("nsapp.main").build()
    clock = importlib.import_module("nsapp.clock").Clock
    assert [(d.service, d.lifetime) for d in services] == [(clock, ServiceLifetime.TRANSIENT)]


def test_second_pass_skips_generated_modules_and_is_idempotent(tmp_path: Path) -> None:
    write_files(tmp_path, {"app/__init__.py": "", "app/clock.py": _MARKED_SERVICE})
    generator = ServicesGenerator()

    generator.execute(Compilation.from_directory(tmp_path, assembly_name="App"), DirectorySink(tmp_path))
    first = (tmp_path / "generated_services_extension.py").read_text(encoding="utf-8")
    second_compilation = Compilation.from_directory(tmp_path, assembly_name="App")
    generator.execute(second_compilation, DirectorySink(tmp_path))

    assert [source.path for source in second_compilation.sources] == ["app/__init__.py", "app/clock.py"]
    assert (tmp_path / "generated_services_extension.py").read_text(encoding="utf-8") == first
