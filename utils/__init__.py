"""
Shared helpers: numeric guards and Vietnamese text handling.
"""
