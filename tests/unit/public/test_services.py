from __future__ import annotations

from wiregen import ServiceCollection, ServiceDescriptor, ServiceLifetime, ServiceRegistry


class Sender:
    pass


class EmailSender(Sender):
    pass


def test_lifetime_zero_value_is_singleton() -> None:
    assert ServiceLifetime(0) is ServiceLifetime.SINGLETON
    assert [member.name for member in ServiceLifetime] == ["SINGLETON", "SCOPED", "TRANSIENT"]


def test_self_registration_uses_service_as_implementation() -> None:
    services = ServiceCollection()

    services.add_transient(EmailSender)

    assert services.descriptors == (
        ServiceDescriptor(service=EmailSender, implementation=EmailSender, lifetime=ServiceLifetime.TRANSIENT),
    )


def test_registrations_are_recorded_in_call_order() -> None:
    services = ServiceCollection()

    services.add_singleton(EmailSender).add_singleton(Sender, EmailSender).add_scoped(Sender, EmailSender)

    assert len(services) == 3
    assert [(d.service, d.lifetime) for d in services] == [
        (EmailSender, ServiceLifetime.SINGLETON),
        (Sender, ServiceLifetime.SINGLETON),
        (Sender, ServiceLifetime.SCOPED),
    ]
    assert all(descriptor.implementation is EmailSender for descriptor in services)


def test_collection_satisfies_registry_protocol() -> None:
    def register(registry: ServiceRegistry) -> None:
        registry.add_scoped(Sender, EmailSender)

    services = ServiceCollection()
    register(services)

    assert services.descriptors[0].lifetime is ServiceLifetime.SCOPED
