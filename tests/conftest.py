import pytest

from app import create_app
from encoder import encode_upload
from generation import GeneratedImage
from view_state import ViewState

from fakes import FakeGenerator, file_storage, image_bytes


@pytest.fixture
def png():
    return image_bytes("PNG")


@pytest.fixture
def jpeg():
    return image_bytes("JPEG", color="blue")


@pytest.fixture
def uploaded(png):
    return encode_upload(file_storage(png))


@pytest.fixture
def generated(jpeg):
    return GeneratedImage(data=jpeg, mime_type="image/jpeg")


@pytest.fixture
def generator(generated):
    return FakeGenerator(result=generated)


@pytest.fixture
def state():
    return ViewState()


@pytest.fixture
def app(generator, state):
    app = create_app(generator=generator, state=state)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
