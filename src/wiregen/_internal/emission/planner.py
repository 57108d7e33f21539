from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from wiregen._internal.classification import ClassifiedService, Lifetime
from wiregen._internal.semantic import AnchorLocation, TypeReference
from wiregen.options import GeneratorOptions

_NON_IDENTIFIER_CHARACTER = re.compile(r"[^0-9A-Za-z]")
_REGISTRY_PARAMETER = "services"


class RegistrationOperation(Enum):
    """Registration call emitted for a lifetime tier."""

    SINGLETON = "add_singleton"
    SCOPED = "add_scoped"
    TRANSIENT = "add_transient"

    @classmethod
    def for_lifetime(cls, lifetime: Lifetime) -> RegistrationOperation:
        return _OPERATION_BY_LIFETIME[lifetime]


_OPERATION_BY_LIFETIME = {
    Lifetime.SINGLETON: RegistrationOperation.SINGLETON,
    Lifetime.SCOPED: RegistrationOperation.SCOPED,
    Lifetime.TRANSIENT: RegistrationOperation.TRANSIENT,
}


@dataclass(frozen=True, slots=True)
class RegistrationRecord:
    """One registration call of the generated ``_discover`` routine."""

    operation: RegistrationOperation
    implementation: TypeReference
    contract: TypeReference | None = None
    """Contract registered for ``implementation``, or ``None`` for self-registration."""

    @property
    def arguments(self) -> tuple[str, ...]:
        if self.contract is None:
            return (self.implementation.display_name,)
        return (self.contract.display_name, self.implementation.display_name)


@dataclass(frozen=True, slots=True)
class EmissionPlan:
    """Immutable input of the registration module templates."""

    assembly_name: str
    safe_name: str
    """Assembly name normalized to an identifier fragment."""
    entry_point_name: str
    """Public ``discover_in_<name>`` function of the generated module."""
    parameter_name: str
    """Name of the registry parameter, chosen to not shadow an imported package."""
    namespace: str | None
    """Package the module is placed in, or ``None`` for the global placement."""
    imports: tuple[str, ...]
    records: tuple[RegistrationRecord, ...]

    @property
    def discoverer_name(self) -> str:
        return f"{self.safe_name}Discoverer"


def safe_assembly_name(assembly_name: str, *, placeholder: str) -> str:
    """Replace every non-alphanumeric character of ``assembly_name`` with ``placeholder``.

    A leading digit is prefixed with ``placeholder`` so the result can start a
    class name.
    """
    safe_name = _NON_IDENTIFIER_CHARACTER.sub(placeholder, assembly_name)
    if safe_name[:1].isdigit():
        safe_name = f"{placeholder}{safe_name}"
    return safe_name


def entry_point_name(assembly_name: str, *, options: GeneratorOptions) -> str:
    """Return the public ``discover_in_<name>`` function name for ``assembly_name``."""
    return f"{options.trigger_prefix}{safe_assembly_name(assembly_name, placeholder=options.name_placeholder)}"


class EmissionPlanner:
    """Turn classified services into the ordered registration records of one module."""

    def __init__(self, *, options: GeneratorOptions) -> None:
        self._options = options

    def build(
        self,
        *,
        assembly_name: str,
        services: Sequence[ClassifiedService],
        anchor: AnchorLocation | None,
    ) -> EmissionPlan:
        records: list[RegistrationRecord] = []
        for service in services:
            operation = RegistrationOperation.for_lifetime(service.lifetime)
            records.append(RegistrationRecord(operation=operation, implementation=service.implementation))
            records.extend(
                RegistrationRecord(
                    operation=operation,
                    implementation=service.implementation,
                    contract=contract,
                )
                for contract in service.contracts
            )

        modules: set[str] = set()
        for record in records:
            modules.update(record.implementation.iter_modules())
            if record.contract is not None:
                modules.update(record.contract.iter_modules())

        namespace = None if anchor is None or anchor.is_global else anchor.namespace
        imports = tuple(sorted(modules))
        shadowed = {module.partition(".")[0] for module in imports}
        if namespace is not None:
            shadowed.add(namespace.partition(".")[0])
        parameter_name = _REGISTRY_PARAMETER
        while parameter_name in shadowed:
            parameter_name = f"{parameter_name}_"

        safe_name = safe_assembly_name(assembly_name, placeholder=self._options.name_placeholder)
        return EmissionPlan(
            assembly_name=assembly_name,
            safe_name=safe_name,
            entry_point_name=entry_point_name(assembly_name, options=self._options),
            parameter_name=parameter_name,
            namespace=namespace,
            imports=imports,
            records=tuple(records),
        )
