"""
Core Infrastructure for voicegen.

This package provides foundational components:
    - config.py: Configuration loading and validation
    - logging/: Structured logging with numeric levels and redaction
    - metrics.py: Prometheus metrics collection
"""
