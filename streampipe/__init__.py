"""Multi-threaded staged pipeline for streaming JSON events from files, sockets and simulated sensors."""

__version__ = "0.1.0"
__all__ = ["cli", "logger", "packet", "pipeline", "sources", "stages"]