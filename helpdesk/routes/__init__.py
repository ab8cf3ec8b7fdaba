"""
API routers (each defines its own prefix)
"""
