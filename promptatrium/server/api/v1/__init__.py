"""
Version 1 routers.

Every router except ``health`` is mounted under ``/api``.
"""
