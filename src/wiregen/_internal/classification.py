from __future__ import annotations

import ast
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto

from wiregen._internal.semantic import (
    CandidateDeclaration,
    ClassSymbol,
    ContractSymbol,
    SemanticModel,
    TypeReference,
)
from wiregen.exceptions import WiregenUnresolvableSymbolError
from wiregen.options import GeneratorOptions
from wiregen.services import ServiceLifetime

logger = logging.getLogger(__name__)

_LIFETIME_ENUM_NAME = "ServiceLifetime"
_LIFETIME_KEYWORD = "lifetime"


class Lifetime(Enum):
    """Lifetime tier a discovered class resolves to."""

    NONE = auto()
    """No recognised marker; the class is not registered."""

    SINGLETON = auto()
    SCOPED = auto()
    TRANSIENT = auto()


class MarkerKind(Enum):
    """Closed set of injectability markers, keyed by decorator name."""

    INJECT = "inject"
    INJECT_SINGLETON = "inject_singleton"
    INJECT_SCOPED = "inject_scoped"
    INJECT_TRANSIENT = "inject_transient"


@dataclass(frozen=True, slots=True)
class Marker:
    """A recognised marker with its optional lifetime argument.

    ``argument`` is only meaningful for ``MarkerKind.INJECT``. It holds the
    ``ServiceLifetime`` member passed to the decorator, or ``None`` when the
    argument is absent or not a ``ServiceLifetime`` member.
    """

    kind: MarkerKind
    argument: ServiceLifetime | None = None


@dataclass(frozen=True, slots=True)
class ClassifiedService:
    """A discovered class with its lifetime tier and eligible contracts."""

    implementation: TypeReference
    lifetime: Lifetime
    contracts: tuple[TypeReference, ...]


def resolve_lifetime(markers: Iterable[Marker]) -> Lifetime:
    """Resolve the lifetime tier for a set of markers.

    Dedicated markers win over ``inject`` regardless of its argument, in the
    order singleton, scoped, transient.

    Args:
        markers: Markers attached to a single class.

    """
    kinds = {marker.kind: marker for marker in markers}
    if MarkerKind.INJECT_SINGLETON in kinds:
        return Lifetime.SINGLETON
    if MarkerKind.INJECT_SCOPED in kinds:
        return Lifetime.SCOPED
    if MarkerKind.INJECT_TRANSIENT in kinds:
        return Lifetime.TRANSIENT
    inject = kinds.get(MarkerKind.INJECT)
    if inject is None:
        return Lifetime.NONE
    if inject.argument is ServiceLifetime.SCOPED:
        return Lifetime.SCOPED
    if inject.argument is ServiceLifetime.TRANSIENT:
        return Lifetime.TRANSIENT
    return Lifetime.SINGLETON


def is_contract_eligible(contract: ClassSymbol, assembly_name: str | None) -> bool:
    """Return true when the generated module may reference ``contract``.

    Non-public interfaces are only reachable from code of the module identity
    that declares them.
    """
    return contract.is_public or contract.declaring_module == (assembly_name or "")


class ServiceClassifier:
    """Discover marker-decorated classes of a compilation and classify them."""

    def __init__(self, model: SemanticModel, *, options: GeneratorOptions) -> None:
        self._model = model
        self._options = options
        self._marker_names = {kind.value for kind in MarkerKind}

    def classify(self) -> tuple[ClassifiedService, ...]:
        """Return classified services in discovery order.

        Raises:
            WiregenUnresolvableSymbolError: If a class decorated with a marker has no
                resolvable declaration.

        """
        assembly_name = self._model.compilation.assembly_name
        services: list[ClassifiedService] = []
        for declaration in self._model.candidate_declarations():
            if not self._model.has_semantic_model(declaration):
                logger.debug(
                    "Skipping class %s in %s: module has no importable name",
                    declaration.node.name,
                    declaration.source.path,
                )
                continue
            symbol = self._model.declared_symbol(declaration)
            if symbol is None:
                if self._names_marker(declaration):
                    raise WiregenUnresolvableSymbolError(
                        class_name=declaration.node.name,
                        path=declaration.source.path,
                        lineno=declaration.node.lineno,
                    )
                continue
            lifetime = resolve_lifetime(self.markers(symbol))
            if lifetime is Lifetime.NONE:
                continue
            services.append(
                ClassifiedService(
                    implementation=symbol.reference,
                    lifetime=lifetime,
                    contracts=self._eligible_contracts(symbol, assembly_name),
                ),
            )
        return tuple(services)

    def markers(self, symbol: ClassSymbol) -> tuple[Marker, ...]:
        """Resolve the decorators of ``symbol`` into recognised markers."""
        markers: list[Marker] = []
        for decorator in symbol.node.decorator_list:
            call = decorator if isinstance(decorator, ast.Call) else None
            target = decorator.func if call is not None else decorator
            kind = self._marker_kind(target, self._model.resolve_name(symbol, target))
            if kind is None:
                continue
            argument = None
            if kind is MarkerKind.INJECT and call is not None:
                argument = self._lifetime_argument(symbol, call)
            markers.append(Marker(kind=kind, argument=argument))
        return tuple(markers)

    def _names_marker(self, declaration: CandidateDeclaration) -> bool:
        for decorator in declaration.node.decorator_list:
            target = decorator.func if isinstance(decorator, ast.Call) else decorator
            resolved = self._model.resolve_in_module(declaration.source, target)
            if self._marker_kind(target, resolved) is not None:
                return True
        return False

    def _marker_kind(self, expression: ast.expr, resolved: str | None) -> MarkerKind | None:
        if resolved is None:
            # Unbound bare names refer to markers brought in by a star import.
            if isinstance(expression, ast.Name) and expression.id in self._marker_names:
                return MarkerKind(expression.id)
            return None
        module_name, _, name = resolved.rpartition(".")
        if module_name == self._options.markers_module and name in self._marker_names:
            return MarkerKind(name)
        return None

    def _lifetime_argument(self, symbol: ClassSymbol, call: ast.Call) -> ServiceLifetime | None:
        expression: ast.expr | None = call.args[0] if call.args else None
        for keyword in call.keywords:
            if keyword.arg == _LIFETIME_KEYWORD:
                expression = keyword.value
        if not isinstance(expression, ast.Attribute):
            return None
        enum_expression = expression.value
        enum_name = self._model.resolve_name(symbol, enum_expression)
        if enum_name is None:
            if not (isinstance(enum_expression, ast.Name) and enum_expression.id == _LIFETIME_ENUM_NAME):
                return None
        elif enum_name not in self._lifetime_enum_names:
            return None
        return ServiceLifetime.__members__.get(expression.attr)

    @property
    def _lifetime_enum_names(self) -> frozenset[str]:
        return frozenset(
            {
                f"{self._options.registry_module}.{_LIFETIME_ENUM_NAME}",
                f"wiregen.{_LIFETIME_ENUM_NAME}",
                f"{self._options.markers_module}.{_LIFETIME_ENUM_NAME}",
            },
        )

    def _eligible_contracts(
        self,
        symbol: ClassSymbol,
        assembly_name: str | None,
    ) -> tuple[TypeReference, ...]:
        eligible: list[TypeReference] = []
        for contract in self._model.all_interfaces(symbol):
            if is_contract_eligible(contract.symbol, assembly_name):
                eligible.append(contract.reference)
            else:
                _log_rejected_contract(symbol, contract)
        return tuple(eligible)


def _log_rejected_contract(symbol: ClassSymbol, contract: ContractSymbol) -> None:
    logger.debug(
        "Not registering %s as %s: contract is not public and declared in '%s'",
        symbol.qualified_name,
        contract.reference.display_name,
        contract.symbol.declaring_module,
    )
