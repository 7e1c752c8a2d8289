from __future__ import annotations


class FactoryError(Exception):
    """Base class for every error raised by factoria itself."""


class UndefinedAdapterError(FactoryError):
    def __init__(self, factory_name: str | None = None):
        target = f" for factory '{factory_name}'" if factory_name else ""
        super().__init__(
            f"No persistence adapter is available{target}. Call set_adapter(adapter), "
            "enter 'with adapter:', bind one with Factory.with_adapter() "
            "or pass adapter= to create()."
        )


class AssociationResolutionError(FactoryError):
    """Raised when the resolver itself cannot resolve an association.

    Failures coming out of the associated factory (its producer, its adapter or
    its hooks) are not wrapped; they propagate as they were raised.
    """


class PersistenceError(FactoryError):
    """Raised by the bundled adapters when the backend rejects a save."""


class HookError(FactoryError, TypeError):
    """Raised when a non-callable after_create hook is registered.

    It is a TypeError like the one extend() and mutate() raise for a
    non-callable argument. Exceptions raised while a hook runs are not wrapped.
    """
