"""
Side-effecting tools used when applying code blocks.

This module provides:
- Shell execution for command blocks, with strict stderr handling
"""
