"""
Shared utilities for Viral Nexus.

Common functionality used across contexts:
- Session log setup
- Timestamps
"""

from viralnexus.utils.timestamp import format_age, now_exact

__all__ = ["format_age", "now_exact"]
