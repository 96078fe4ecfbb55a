"""Exceptions raised by the podium feature pipeline."""
from typing import Iterable


class PipelineError(Exception):
    """Base class for pipeline failures the CLI and API report to the user."""


class MissingColumnsError(PipelineError, KeyError):
    def __init__(self, missing: Iterable[str], source: str = "input"):
        self.missing = sorted(missing)
        self.source = source
        super().__init__(f"{source} is missing required columns: {', '.join(self.missing)}")

    def __str__(self):
        return self.args[0]


class UnknownEntityError(PipelineError, KeyError):
    """A driver or constructor has no entry in a per-entity lookup."""

    def __init__(self, column: str, values: Iterable):
        self.column = column
        self.values = sorted(str(v) for v in values)
        super().__init__(f"No {column} entry for: {', '.join(self.values)}")

    def __str__(self):
        return self.args[0]


class UnseenCategoryError(PipelineError, ValueError):
    """A categorical value was not present when the encoding was fitted."""

    def __init__(self, column: str, values: Iterable):
        self.column = column
        self.values = sorted(str(v) for v in values)
        super().__init__(f"Unseen categories in {column}: {', '.join(self.values)}")


class ArtifactNotFoundError(PipelineError, FileNotFoundError):
    """A trained model or fitted encoding has not been written yet."""
