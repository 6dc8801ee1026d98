"""agentwatch: correlate and safely share AI coding agent sessions."""

__version__ = "0.1.0"
