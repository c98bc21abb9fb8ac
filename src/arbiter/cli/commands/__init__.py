"""CLI command implementations for Arbiter.

This module contains the command implementations:
- overrides: Generate matrix override templates
- matrix: Inspect the capability matrix
"""
