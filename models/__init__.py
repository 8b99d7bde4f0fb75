"""
Persistence layer: SQLAlchemy models and the DBStorage singleton.

The engine is bound to DATABASE_URL at import time; the app factory rebinds it
to the configured URL and creates the tables.
"""
from models.db_storage import DBStorage

storage = DBStorage()
