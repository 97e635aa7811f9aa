import pytest
import yaml

from uaconf.core.models.config import Endpoint, ServerConfiguration
from uaconf.core.models.security import SecurityMode, SecurityPolicy


@pytest.fixture
def anonymous_config() -> ServerConfiguration:
    return ServerConfiguration.default_anonymous()


@pytest.fixture
def secure_endpoint() -> Endpoint:
    return Endpoint(
        name="secure",
        path="/secure",
        security_policy=SecurityPolicy.basic256sha256,
        security_mode=SecurityMode.sign_and_encrypt,
        anonymous=False,
        user="operator",
        password="s3cret",
    )


@pytest.fixture
def multi_endpoint_config(secure_endpoint) -> ServerConfiguration:
    return ServerConfiguration.default([
        Endpoint.default_anonymous(),
        secure_endpoint,
        Endpoint(
            name="signed",
            path="/signed",
            security_policy=SecurityPolicy.basic128rsa15,
            security_mode=SecurityMode.sign,
        ),
    ])


@pytest.fixture
def config_data(anonymous_config) -> dict:
    return anonymous_config.to_dict()


@pytest.fixture
def write_config(tmp_path):
    """Write raw document data to a YAML file and return its path."""
    def writer(data, name: str = "uaserver.yaml"):
        file = tmp_path / name
        file.write_text(yaml.safe_dump(data, sort_keys=False))
        return file

    return writer
