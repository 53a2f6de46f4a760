class ConfigError(ValueError):
    """Raised when a mapping or root configuration cannot be loaded."""


class MappingError(RuntimeError):
    """Raised for structural faults while mapping a document."""
