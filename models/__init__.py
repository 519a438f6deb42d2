"""
Persistence layer: SQLAlchemy models and the global DBStorage instance.

The engine is bound lazily by create_app() through storage.reload(), so the
database URL comes from the application config.
"""
from models.db_storage import DBStorage

storage = DBStorage()
