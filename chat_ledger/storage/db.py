"""
Database connection management.

Provides the SQLite connection shared by the history and usage repositories.
"""

import sqlite3
from pathlib import Path


def get_connection(db_path: str = "chat_history.db") -> sqlite3.Connection:
    """Create and return a SQLite database connection.
    
    Args:
        db_path: Path to SQLite database file
        
    Returns:
        SQLite connection owned by the caller until it is closed
    """
    path = Path(db_path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(str(path))
