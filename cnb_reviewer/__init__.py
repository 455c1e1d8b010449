"""AI-powered pull request reviewer for the CNB platform."""

__version__ = "1.0.0"
