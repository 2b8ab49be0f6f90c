"""
Service layer for clip trimming.

This module contains the reusable pieces of the trim pipeline, independent of
the HTTP views. These functions are used by:
- The /trim endpoint (clips/views.py)
- The CLI management commands (management/commands/trim.py, cleanup_cache.py)
"""
