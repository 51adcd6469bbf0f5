from __future__ import annotations


class GraphDumpError(Exception):
    """Base exception for graphdump."""


class ConfigError(GraphDumpError):
    pass


class TargetLoadError(GraphDumpError):
    """Raised by the CLI loaders when the root object cannot be produced."""
    pass


class FieldAccessError(GraphDumpError):
    """
    Raised when a field reported as readable by the class metadata cannot be read.

    This is a defect in the metadata provider, not an input error: the dump is
    aborted and no partial text is returned.

    Parameters
    ----------
    type_name : str
        Name of the class owning the field.
    field : str
        The field name as reported by the metadata.
    """

    def __init__(self, type_name: str, field: str, message: str | None = None) -> None:
        self.type_name = type_name
        self.field = field
        if message is None:
            message = f"cannot read field '{field}' of {type_name}"
        super().__init__(message)
