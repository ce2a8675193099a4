"""
Account settings services.
"""
