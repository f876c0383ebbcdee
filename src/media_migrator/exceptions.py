class MigrationError(Exception):
    """Base class for errors that abort the whole run."""


class ConfigurationError(MigrationError):
    pass


class StorageError(MigrationError):
    pass


class DatabaseError(MigrationError):
    pass


class TraversalError(MigrationError):
    pass
