"""Rendering support code: containers, frame timers, shader include tracking and program rebuilds."""

__version__ = "0.1.0"

__all__ = ["containers", "shader_loader", "shader_sources", "timestamp_log"]