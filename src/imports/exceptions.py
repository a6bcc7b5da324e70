"""Errors raised by the import pipeline.

Row-level problems never raise: they are logged and counted. These
exceptions stop a whole run.
"""


class ImportPipelineError(Exception):
    """Base class for fatal import pipeline errors."""


class SourceFileNotFound(ImportPipelineError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"Source file not found: {path}")


class MissingAdminUser(ImportPipelineError):
    def __init__(self):
        super().__init__("Admin user not found")


class InvalidSourceData(ImportPipelineError):
    """The input file exists but cannot be read as the expected rows."""
