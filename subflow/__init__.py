"""Plugin-as-subworkflow execution for the workflow engine."""

__version__ = "0.1.0"
