"""
Database module - Motor connection owned by the application lifespan.
"""

from common.database.mongodb import MongoDB

__all__ = ["MongoDB"]
