class PetRegistryError(Exception):
    """Base error for everything the registry raises on purpose."""


class ValidationError(PetRegistryError):
    """Missing or malformed input, invalid id or duplicate tag code."""


class IntegrityError(ValidationError):
    """A microchip operation targeted a chip the pet does not hold."""


class NotFoundError(PetRegistryError):
    """An update or delete matched no active row."""


class StorageError(PetRegistryError):
    """Failure coming from the database layer, wrapped with context."""
