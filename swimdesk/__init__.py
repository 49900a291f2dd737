"""SwimDesk: booking and management backend for a swim-lesson school."""

__version__ = "0.1.0"
