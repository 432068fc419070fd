"""LineStart work order lifecycle and schedule consistency engine."""

__version__ = "0.1.0"
