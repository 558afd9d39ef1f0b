"""Testing helpers."""
from contextlib import contextmanager

from flask import Flask

from customer_accounts.services import database


@contextmanager
def temporary_db(db_uri: str = 'sqlite:///:memory:', create: bool = True,
                 drop: bool = True):
    """Provide an in-memory sqlite database for testing purposes."""
    app = Flask('foo')
    app.config['SQLALCHEMY_DATABASE_URI'] = db_uri
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    database.init_app(app)

    with app.app_context():
        if create:
            database.create_all()
        try:
            yield database.current_session()
        finally:
            database.current_session().remove()
            if drop:
                database.drop_all()
