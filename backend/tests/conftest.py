import pytest

from forage.data.forageable_dao import ForageableDao
from forage.db import init_db, make_engine, make_session_factory
from forage.viewmodels.forageable_viewmodel import ForageableViewModel


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'forage.db'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def dao(session_factory):
    d = ForageableDao(session_factory)
    yield d
    d.close()


@pytest.fixture
def vm(dao):
    v = ForageableViewModel(dao)
    yield v
    v.clear()
