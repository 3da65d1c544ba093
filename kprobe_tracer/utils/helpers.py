# kprobe_tracer/utils/helpers.py - Helper functions
"""
Thin wrappers around the tracefs control files and system prerequisite checks.
"""

import os
from typing import Optional
import logging

from kprobe_tracer.utils.config import TracingPaths


logger = logging.getLogger(__name__)


def trim(data: str) -> str:
    return data.strip('\r\n\t ')


def read_file_or(filename: str, default: str) -> str:
    """
    Read a whole file, falling back to a default.

    Args:
        filename: File to read
        default: Value returned if the file cannot be read

    Returns:
        File contents or default
    """
    try:
        with open(filename, 'r') as f:
            return f.read()
    except OSError as e:
        logger.debug(f"Could not read {filename}: {e}")
        return default


def write_file(filename: str, data: str):
    """
    Replace the contents of a control file.

    Raises:
        OSError: If the file cannot be written
    """
    with open(filename, 'w') as f:
        f.write(data)


def append_file(filename: str, data: str):
    """
    Append to an existing control file.

    Raises:
        OSError: If the file does not exist or cannot be written
    """
    fd = os.open(filename, os.O_APPEND | os.O_WRONLY)
    with os.fdopen(fd, 'w') as f:
        f.write(data)


def available(enabled_status_file: Optional[str] = None) -> bool:
    """
    Check whether ftrace is enabled on this system.

    Args:
        enabled_status_file: ftrace_enabled file (defaults to the kernel's)

    Returns:
        True if the file reads "1", False otherwise
    """
    if enabled_status_file is None:
        enabled_status_file = TracingPaths().enabled_status_file
    return trim(read_file_or(enabled_status_file, '0')) == '1'


def check_root_privileges() -> bool:
    """
    Check if running with root privileges.

    Returns:
        True if running as root, False otherwise
    """
    return os.geteuid() == 0 if hasattr(os, 'geteuid') else False


def check_tracefs_mounted(paths: TracingPaths) -> bool:
    """
    Check that the tracing control files are present.

    Returns:
        True if kprobe_events and trace_pipe exist
    """
    return os.path.exists(paths.kprobe_events_file) and os.path.exists(paths.trace_pipe_file)


def check_prerequisites(paths: Optional[TracingPaths] = None) -> bool:
    """
    Check all prerequisites for attaching a probe.

    Returns:
        True if all prerequisites are met, False otherwise
    """
    paths = paths or TracingPaths()
    checks = [
        ("Root privileges", check_root_privileges()),
        ("tracefs mounted", check_tracefs_mounted(paths)),
        ("ftrace enabled", available(paths.enabled_status_file)),
    ]

    all_passed = True

    print("Checking prerequisites...")
    for name, passed in checks:
        status = "✓" if passed else "✗"
        print(f"  {status} {name}")

        if not passed:
            all_passed = False

    return all_passed
