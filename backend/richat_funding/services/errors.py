"""Service-layer exceptions translated to HTTP status codes by the routers."""


class NotFoundError(LookupError):
    """Lookup by id matched no row (404)."""

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ConflictError(Exception):
    """The write would break a reference held by another row (409)."""


class InvalidDataError(ValueError):
    """A write is well-formed but violates a cross-field rule (400)."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)
