"""Domain exceptions."""


class ConsentGuardError(Exception):
    """Base exception for ConsentGuard."""

    pass


class PermissionDenied(ConsentGuardError):
    """Actor does not hold the permission an administrative operation requires."""

    pass


class NotFound(ConsentGuardError):
    """Requested role, permission or consent was not found."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InvalidRole(NotFound):
    """Role does not exist or has been deactivated."""

    def __init__(self, role_id: str) -> None:
        super().__init__("Role", role_id)
        self.args = ("invalid or inactive role",)


class StoreUnavailable(ConsentGuardError):
    """Document store call failed or timed out.

    Distinct from an empty result: a decision that depends on the store must
    fail closed instead of reading this as "no matching record".
    """

    pass


class ValidationError(ConsentGuardError):
    """Validation failed for input data."""

    pass
