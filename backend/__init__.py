"""
AltiGuard HTTP backend.
"""
