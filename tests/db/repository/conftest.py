import pytest
from db.engine import create_db_engine, create_session_factory, init_db


@pytest.fixture
def session():
    # Fresh in-memory SQLite database per test
    engine = create_db_engine("sqlite://")
    init_db(engine)
    sess = create_session_factory(engine)()
    yield sess
    sess.close()
    engine.dispose()
