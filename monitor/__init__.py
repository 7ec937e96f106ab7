"""
AltiGuard low-altitude monitor service.
"""
