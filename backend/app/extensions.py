"""
extensions.py — The shared SQLAlchemy handle.

`db` is created unbound and attached in create_app() via db.init_app(app),
so every test can build its own app against its own database. Models,
services and the Alembic env import it from here:

    from backend.app.extensions import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
