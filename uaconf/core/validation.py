"""
Pure validation rules for endpoints and server configurations.

Every rule is evaluated on every call: the checks never stop at the first
failure, so a single pass reports all the problems of a configuration.
Reporting is left to the caller (see ``report``).
"""
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from uaconf.core.models.defaults import UINT16_MAX, UINT32_MAX
from uaconf.core.models.document import ServerConfigDocument
from uaconf.core.models.security import SecurityMode, SecurityPolicy, valid_names

if TYPE_CHECKING:
    from uaconf.core.models.config import Endpoint, ServerConfiguration


class ViolationCode(StrEnum):
    credentials_incomplete = "credentials_incomplete"
    invalid_security_policy = "invalid_security_policy"
    invalid_security_mode = "invalid_security_mode"
    security_mismatch = "security_mismatch"
    anonymous_required = "anonymous_required"
    no_endpoints = "no_endpoints"
    port_out_of_range = "port_out_of_range"
    hello_timeout_out_of_range = "hello_timeout_out_of_range"
    max_array_length_out_of_range = "max_array_length_out_of_range"
    max_string_length_out_of_range = "max_string_length_out_of_range"
    max_byte_string_length_out_of_range = "max_byte_string_length_out_of_range"
    zero_max_array_length = "zero_max_array_length"
    zero_max_string_length = "zero_max_string_length"
    zero_max_byte_string_length = "zero_max_byte_string_length"
    schema_mismatch = "schema_mismatch"


@dataclass(frozen=True)
class Violation:
    """A single broken invariant, attributed to the entity it was found on."""

    subject: str
    """
    Human readable owner of the violation, e.g. "Endpoint Default"
    or "Server configuration".
    """

    code: ViolationCode
    message: str

    def __str__(self) -> str:
        return f"{self.subject} is invalid. {self.message}"


def _is_member(value: Any, enum_cls: type[StrEnum]) -> bool:
    try:
        enum_cls(value)
    except ValueError:
        return False
    return True


def validate_endpoint(endpoint: "Endpoint") -> list[Violation]:
    subject = f"Endpoint {endpoint.name}"
    violations: list[Violation] = []

    if (endpoint.user is None) != (endpoint.password is None):
        violations.append(Violation(
            subject,
            ViolationCode.credentials_incomplete,
            "User / password both need to be set or not set, not just one or the other",
        ))

    if not _is_member(endpoint.security_policy, SecurityPolicy):
        violations.append(Violation(
            subject,
            ViolationCode.invalid_security_policy,
            f'Security policy "{endpoint.security_policy}" is invalid. '
            f"Valid values are {valid_names(SecurityPolicy)}",
        ))

    if not _is_member(endpoint.security_mode, SecurityMode):
        violations.append(Violation(
            subject,
            ViolationCode.invalid_security_mode,
            f'Security mode "{endpoint.security_mode}" is invalid. '
            f"Valid values are {valid_names(SecurityMode)}",
        ))

    policy_none = endpoint.security_policy == SecurityPolicy.none
    mode_none = endpoint.security_mode == SecurityMode.none

    if policy_none != mode_none:
        violations.append(Violation(
            subject,
            ViolationCode.security_mismatch,
            "Security policy and security mode must both contain None or neither of them should",
        ))

    if policy_none and mode_none and endpoint.anonymous is not True:
        violations.append(Violation(
            subject,
            ViolationCode.anonymous_required,
            "Security policy and mode allow anonymous connections but anonymous is not set to true",
        ))

    return violations


def _in_range(value: Any, upper: int) -> bool:
    # bool is an int subclass but is never a valid number here.
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= upper


def validate_configuration(config: "ServerConfiguration") -> list[Violation]:
    subject = "Server configuration"
    violations: list[Violation] = []

    if not config.endpoints:
        violations.append(Violation(
            subject, ViolationCode.no_endpoints, "It defines no endpoints",
        ))

    for endpoint in config.endpoints:
        violations.extend(validate_endpoint(endpoint))

    tcp = config.tcp_config
    if not _in_range(tcp.port, UINT16_MAX):
        violations.append(Violation(
            subject,
            ViolationCode.port_out_of_range,
            f"Port {tcp.port!r} must be an integer between 0 and {UINT16_MAX}",
        ))

    if not _in_range(tcp.hello_timeout, UINT32_MAX):
        violations.append(Violation(
            subject,
            ViolationCode.hello_timeout_out_of_range,
            f"Hello timeout {tcp.hello_timeout!r} must be an integer between 0 and {UINT32_MAX}",
        ))

    limits = (
        (
            "max_array_length",
            ViolationCode.zero_max_array_length,
            ViolationCode.max_array_length_out_of_range,
            "Max array length",
        ),
        (
            "max_string_length",
            ViolationCode.zero_max_string_length,
            ViolationCode.max_string_length_out_of_range,
            "Max string length",
        ),
        (
            "max_byte_string_length",
            ViolationCode.zero_max_byte_string_length,
            ViolationCode.max_byte_string_length_out_of_range,
            "Max byte string length",
        ),
    )
    for attr, zero_code, range_code, label in limits:
        value = getattr(config, attr)
        if not _in_range(value, UINT32_MAX):
            violations.append(Violation(
                subject,
                range_code,
                f"{label} {value!r} must be an integer between 1 and {UINT32_MAX}",
            ))
        elif value == 0:
            violations.append(Violation(subject, zero_code, f"{label} must be greater than zero"))

    return violations


def validate_document(data: Any) -> list[Violation]:
    """
    Check a document against the persisted schema, so that nothing is written
    that a later load would refuse.
    """
    try:
        ServerConfigDocument.model_validate(data)
    except ValidationError as ex:
        return [
            Violation(
                "Server configuration",
                ViolationCode.schema_mismatch,
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}",
            )
            for err in ex.errors()
        ]
    return []


def report(violations: list[Violation], logger: logging.Logger | None = None) -> None:
    logger = logger or logging.getLogger("core.validation")
    for violation in violations:
        logger.error(str(violation))
