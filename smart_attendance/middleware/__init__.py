"""
Middleware package
"""
