"""Lockforge CLI — Typer-based command-line interface.

Provides the ``lockforge`` command with subcommands for validating lock
files, resolving install plans, discovering lock files and describing the
host environment.

All output uses Rich for formatted terminal display.
"""
