import os
import sys

import pytest

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from petregistry import create_app
from petregistry.entities import Microchip, Pet
from petregistry.extensions import db
from petregistry.wiring import build_registry


def _assert_memory_db(uri: str):
    if uri != "sqlite:///:memory:":
        raise RuntimeError(
            f"Refusing to run tests on non-memory DB: {uri!r}. "
            "This guard protects your real database."
        )


@pytest.fixture(scope="function")
def app():
    os.environ.pop("DATABASE_URL", None)

    flask_app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "LOG_LEVEL": "WARNING",
        }
    )

    _assert_memory_db(flask_app.config["SQLALCHEMY_DATABASE_URI"])

    with flask_app.app_context():
        db.create_all()
        yield flask_app
        _assert_memory_db(flask_app.config["SQLALCHEMY_DATABASE_URI"])
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def registry(app):
    return build_registry()


@pytest.fixture()
def pets(registry):
    return registry.pets


@pytest.fixture()
def microchips(registry):
    return registry.microchips


@pytest.fixture()
def make_pet(pets):
    def _make_pet(name="Rex", species="Dog", tag_code="TAG-1", chip=None):
        microchip = Microchip(code=chip[0], brand=chip[1]) if chip else None
        pet = Pet(name=name, species=species, tag_code=tag_code, microchip=microchip)
        return pets.create(pet)
    return _make_pet


@pytest.fixture()
def make_chip(microchips):
    def _make_chip(code="CHIP-1", brand="BrandX"):
        return microchips.create(Microchip(code=code, brand=brand))
    return _make_chip


@pytest.fixture()
def cli_runner(app):
    return app.test_cli_runner()
