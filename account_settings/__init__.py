"""
Account Settings

Ordered, gated profile updates (avatar, display name, password, email)
against Firebase Authentication and an object storage endpoint.
"""
