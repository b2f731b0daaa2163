"""
Shared utilities: errors, logging configuration and mail delivery
"""
