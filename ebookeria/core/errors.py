class NotFoundError(Exception):
    """Raised when a key does not resolve to a stored entity.

    ``entity`` and ``entity_id`` are kept so the calling layer can build
    its own user-facing message.
    """

    def __init__(self, entity: str, entity_id: object, field: str = "id") -> None:
        self.entity = entity
        self.entity_id = entity_id
        self.field = field
        super().__init__(f"{entity} with {field}: {entity_id} not found")


class InvalidSortError(Exception):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Cannot sort by unknown field: {field!r}")
