from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Protocol


class ServiceLifetime(IntEnum):
    """Define how long a registered service instance is shared.

    Pass a member to the ``inject`` marker to pick the registration operation
    used by the generated module. Members keep the numeric order expected by
    the generator: the zero value is ``SINGLETON``.
    """

    SINGLETON = 0
    """A single instance is created and shared for the lifetime of the container."""

    SCOPED = 1
    """Instance is shared within a scope, different instances across scopes."""

    TRANSIENT = 2
    """A new instance is created every time the service is requested."""


class ServiceRegistry(Protocol):
    """Registration interface called by generated discovery modules.

    Each operation accepts either one type (self-registration) or a contract
    followed by its implementation.
    """

    def add_singleton(self, service: Any, implementation: Any | None = None) -> Any: ...

    def add_scoped(self, service: Any, implementation: Any | None = None) -> Any: ...

    def add_transient(self, service: Any, implementation: Any | None = None) -> Any: ...


@dataclass(frozen=True, slots=True)
class ServiceDescriptor:
    """A single registration recorded by ``ServiceCollection``."""

    service: Any
    """The dependency key the registration is exposed under."""
    implementation: Any
    """The concrete class that provides the dependency."""
    lifetime: ServiceLifetime


class ServiceCollection:
    """List-backed ``ServiceRegistry`` that records registrations in call order.

    The collection only describes services. Hand the descriptors to a DI
    container to resolve them.

    Examples:
        .. code-block:: python

            services = ServiceCollection()
            discover_in_my_app(services)
            for descriptor in services:
                container.add_concrete(descriptor.implementation, provides=descriptor.service)

    """

    def __init__(self) -> None:
        self._descriptors: list[ServiceDescriptor] = []

    def add_singleton(self, service: Any, implementation: Any | None = None) -> ServiceCollection:
        return self._add(service, implementation, ServiceLifetime.SINGLETON)

    def add_scoped(self, service: Any, implementation: Any | None = None) -> ServiceCollection:
        return self._add(service, implementation, ServiceLifetime.SCOPED)

    def add_transient(self, service: Any, implementation: Any | None = None) -> ServiceCollection:
        return self._add(service, implementation, ServiceLifetime.TRANSIENT)

    @property
    def descriptors(self) -> tuple[ServiceDescriptor, ...]:
        return tuple(self._descriptors)

    def __iter__(self) -> Iterator[ServiceDescriptor]:
        return iter(tuple(self._descriptors))

    def __len__(self) -> int:
        return len(self._descriptors)

    def _add(
        self,
        service: Any,
        implementation: Any | None,
        lifetime: ServiceLifetime,
    ) -> ServiceCollection:
        self._descriptors.append(
            ServiceDescriptor(
                service=service,
                implementation=service if implementation is None else implementation,
                lifetime=lifetime,
            ),
        )
        return self


__all__ = ["ServiceCollection", "ServiceDescriptor", "ServiceLifetime", "ServiceRegistry"]
