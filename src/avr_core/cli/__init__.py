"""
AVR Core Command-Line Interface
===============================

This package provides the command-line host harness for the AVR core:

- **avrrun**: execute an instruction script and print CPU state

The tool is a Click-based CLI application with help output and
consistent error reporting.
"""

__all__ = ["avrrun"]
