"""flowcov: Flow type-coverage delta reporting for pull requests."""

__version__ = "0.1.0"
