"""Errors raised by the migration engine.

Runtime failures (a list, create or delete call failing) are never raised;
they are recorded in the report models. Only programming errors end up here.
"""


class MigrationError(Exception):
    """Base exception for migration engine errors."""

    pass


class UnknownResourceKindError(MigrationError):
    """A resource kind was requested that has no registered client."""

    def __init__(self, kind: str, registered=()):
        self.kind = kind
        self.registered = tuple(registered)
        known = ', '.join(self.registered) or 'none'
        super().__init__(f'Unknown resource kind: {kind!r} (registered: {known})')


class InvalidUnitTransitionError(MigrationError):
    """A migration unit was asked to leave a terminal status."""

    pass
