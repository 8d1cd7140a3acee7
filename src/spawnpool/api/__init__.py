"""
HTTP API routers
"""
