"""scancache CLI: Typer-based command-line interface.

Provides the ``scancache`` command with subcommands for provisioning the
JRE and scanner engine, inspecting and verifying the cache, extracting
archives safely, and hashing files.

All output uses Rich for formatted terminal display.
"""
