import dataclasses
import logging

import pytest

from uaconf.core.codec.decoder import DecodingOptions
from uaconf.core.models.config import Endpoint, ServerConfiguration, TransportConfig
from uaconf.core.models.security import SecurityMode, SecurityPolicy
from uaconf.core.validation import ViolationCode


@pytest.mark.ut
def test_default_anonymous_configuration(anonymous_config):
    assert len(anonymous_config.endpoints) == 1

    ep = anonymous_config.endpoints[0]
    assert ep.security_policy is SecurityPolicy.none
    assert ep.security_mode is SecurityMode.none
    assert ep.anonymous is True
    assert ep.user is None
    assert ep.password is None

    assert anonymous_config.is_valid()


@pytest.mark.ut
def test_default_transport_and_limits(anonymous_config):
    assert anonymous_config.application_name == "UAConf"
    assert anonymous_config.application_uri == "urn:UAConf"
    assert anonymous_config.product_uri == "urn:UAConf"
    assert anonymous_config.pki_dir == "pki"
    assert anonymous_config.discovery_service is True
    assert anonymous_config.tcp_config == TransportConfig(
        host="127.0.0.1", port=4855, hello_timeout=120
    )
    assert anonymous_config.max_array_length > 0
    assert anonymous_config.max_string_length > 0
    assert anonymous_config.max_byte_string_length > 0


@pytest.mark.ut
def test_default_sample_configuration_is_valid():
    config = ServerConfiguration.default_sample()
    assert config.endpoints == (Endpoint.default_sample(),)
    assert config.is_valid()


@pytest.mark.ut
def test_default_user_pass_without_security_is_rejected():
    config = ServerConfiguration.default_user_pass("alice", "pw")
    assert [v.code for v in config.validate()] == [ViolationCode.anonymous_required]


@pytest.mark.ut
def test_default_user_pass_with_security_is_valid():
    config = ServerConfiguration.default_user_pass(
        "alice", "pw", SecurityPolicy.basic256sha256, SecurityMode.sign_and_encrypt
    )
    ep = config.endpoints[0]

    assert ep.anonymous is False
    assert (ep.user, ep.password) == ("alice", "pw")
    assert config.is_valid()


@pytest.mark.ut
def test_factories_return_independent_values():
    a = ServerConfiguration.default_anonymous()
    b = ServerConfiguration.default_anonymous()

    assert a == b
    assert a is not b
    assert a.tcp_config is not b.tcp_config


@pytest.mark.ut
def test_endpoints_are_stored_as_tuple():
    endpoints = [Endpoint.default_anonymous()]
    config = ServerConfiguration.default(endpoints)
    endpoints.append(Endpoint.default_sample())

    assert isinstance(config.endpoints, tuple)
    assert len(config.endpoints) == 1


@pytest.mark.ut
def test_empty_endpoints_is_invalid(anonymous_config):
    config = dataclasses.replace(anonymous_config, endpoints=())
    assert [v.code for v in config.validate()] == [ViolationCode.no_endpoints]
    assert not config.is_valid()


@pytest.mark.ut
@pytest.mark.parametrize("attr, code", [
    ("max_array_length", ViolationCode.zero_max_array_length),
    ("max_string_length", ViolationCode.zero_max_string_length),
    ("max_byte_string_length", ViolationCode.zero_max_byte_string_length),
])
def test_zero_limit_is_invalid(anonymous_config, attr, code):
    config = dataclasses.replace(anonymous_config, **{attr: 0})
    assert [v.code for v in config.validate()] == [code]
    assert not config.is_valid()


@pytest.mark.ut
@pytest.mark.parametrize("attr, value, code", [
    ("max_array_length", -5, ViolationCode.max_array_length_out_of_range),
    ("max_string_length", 1 << 32, ViolationCode.max_string_length_out_of_range),
    ("max_byte_string_length", "65535", ViolationCode.max_byte_string_length_out_of_range),
    ("max_array_length", True, ViolationCode.max_array_length_out_of_range),
])
def test_limit_out_of_range_is_invalid(anonymous_config, attr, value, code):
    config = dataclasses.replace(anonymous_config, **{attr: value})
    assert [v.code for v in config.validate()] == [code]
    assert not config.is_valid()


@pytest.mark.ut
def test_largest_limits_are_valid(anonymous_config):
    top = (1 << 32) - 1
    config = dataclasses.replace(
        anonymous_config,
        max_array_length=top,
        max_string_length=top,
        max_byte_string_length=top,
    )
    assert config.validate() == []


@pytest.mark.ut
@pytest.mark.parametrize("port, hello_timeout, codes", [
    (70000, 120, [ViolationCode.port_out_of_range]),
    (-1, 120, [ViolationCode.port_out_of_range]),
    (4855, 1 << 32, [ViolationCode.hello_timeout_out_of_range]),
    (None, -1, [ViolationCode.port_out_of_range, ViolationCode.hello_timeout_out_of_range]),
])
def test_transport_out_of_range_is_invalid(anonymous_config, port, hello_timeout, codes):
    tcp = TransportConfig("127.0.0.1", port, hello_timeout)
    config = dataclasses.replace(anonymous_config, tcp_config=tcp)
    assert [v.code for v in config.validate()] == codes


@pytest.mark.ut
@pytest.mark.parametrize("port", [0, 65535])
def test_port_bounds_are_valid(anonymous_config, port):
    tcp = TransportConfig("127.0.0.1", port, 0)
    assert dataclasses.replace(anonymous_config, tcp_config=tcp).validate() == []


@pytest.mark.ut
def test_all_violations_reported_in_one_pass(anonymous_config, caplog):
    bad_endpoint = Endpoint(
        name="bad",
        path="/bad",
        security_policy=SecurityPolicy.basic256,
        security_mode=SecurityMode.none,
        user="alice",
    )
    config = dataclasses.replace(
        anonymous_config,
        endpoints=(Endpoint.default_anonymous(), bad_endpoint),
        max_array_length=0,
        max_byte_string_length=0,
    )

    with caplog.at_level(logging.ERROR):
        assert config.is_valid() is False

    assert [v.code for v in config.validate()] == [
        ViolationCode.credentials_incomplete,
        ViolationCode.security_mismatch,
        ViolationCode.zero_max_array_length,
        ViolationCode.zero_max_byte_string_length,
    ]
    assert len(caplog.records) == 4
    assert any("Endpoint bad is invalid." in r.getMessage() for r in caplog.records)


@pytest.mark.ut
def test_is_valid_uses_given_logger(anonymous_config, caplog):
    config = dataclasses.replace(anonymous_config, endpoints=())

    with caplog.at_level(logging.ERROR, logger="custom"):
        assert config.is_valid(logger=logging.getLogger("custom")) is False

    assert [r.name for r in caplog.records] == ["custom"]


@pytest.mark.ut
def test_multi_endpoint_configuration_is_valid(multi_endpoint_config):
    assert len(multi_endpoint_config.endpoints) == 3
    assert multi_endpoint_config.validate() == []


@pytest.mark.ut
def test_decoding_options_follow_limits(anonymous_config):
    config = dataclasses.replace(
        anonymous_config,
        max_array_length=10,
        max_string_length=20,
        max_byte_string_length=30,
    )
    assert config.decoding_options() == DecodingOptions(
        max_array_length=10, max_string_length=20, max_byte_string_length=30
    )


@pytest.mark.ut
def test_to_dict_uses_persisted_names(secure_endpoint):
    data = secure_endpoint.to_dict()

    assert data == {
        "name": "secure",
        "path": "/secure",
        "security_policy": "Basic256Sha256",
        "security_mode": "SignAndEncrypt",
        "anonymous": False,
        "user": "operator",
        "pass": "s3cret",
    }
    assert type(data["security_policy"]) is str
