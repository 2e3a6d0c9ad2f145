"""Topic Pulse: rolling hit counters and popularity scores for forum topics."""

__version__ = "0.1.0"
