# kprobe_tracer/utils/__init__.py - Utilities module
"""
Utility functions and helpers.

This module provides:
- config.py: Configuration and tracefs paths
- logger.py: Logging setup
- helpers.py: tracefs file access and prerequisite checks
"""
