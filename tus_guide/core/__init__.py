"""
Core module - settings, errors, logging and rate limiting.
"""
