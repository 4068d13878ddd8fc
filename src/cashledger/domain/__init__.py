"""Domain layer for cashledger.

Services are imported lazily: the database layer imports the entity modules
of this package, and the services import the database layer.
"""

_SERVICES = {
    "AccountService": "cashledger.domain.account",
    "MethodResolver": "cashledger.domain.resolver",
    "MovementService": "cashledger.domain.movement",
    "ReconciliationService": "cashledger.domain.reconcile",
    "BusinessEventService": "cashledger.domain.events",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
