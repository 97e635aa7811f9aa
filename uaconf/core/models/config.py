import contextlib
import logging
import os
import stat
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from uaconf.core.codec.decoder import DecodingOptions
from uaconf.core.errors import ConfigError, ConfigIOError, ConfigParseError, ConfigValidationError
from uaconf.core.helpers.utils import format_validation_error
from uaconf.core.models import defaults
from uaconf.core.models.document import ServerConfigDocument
from uaconf.core.models.security import SecurityMode, SecurityPolicy
from uaconf.core.validation import (
    Violation,
    report,
    validate_configuration,
    validate_document,
    validate_endpoint,
)

logger = logging.getLogger("core.config")


@dataclass(frozen=True)
class TransportConfig:
    host: str
    """
    The hostname to supply in the endpoints.
    """

    port: int
    """
    TCP port number of the service (16-bit unsigned).
    """

    hello_timeout: int
    """
    Seconds a client has to complete the HELLO handshake. Carried for the
    runtime to enforce; nothing in this package waits on it.
    """

    def to_dict(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "hello_timeout": self.hello_timeout,
        }


@dataclass(frozen=True)
class Endpoint:
    """
    One advertised access path: a (path, security policy, security mode,
    authentication) combination a client may connect through.
    """
    name: str
    path: str
    security_policy: SecurityPolicy
    security_mode: SecurityMode
    anonymous: bool | None = None
    """
    Allow anonymous access. ``None`` is treated as disabled.
    """

    user: str | None = None
    password: str | None = None
    """
    Persisted under the ``pass`` key. Must be set together with ``user``.
    """

    @classmethod
    def build(
        cls,
        name: str,
        path: str,
        anonymous: bool,
        user: str | None,
        password: str | None,
        security_policy: SecurityPolicy,
        security_mode: SecurityMode,
    ) -> "Endpoint":
        # An empty user name means no user / password access at all.
        has_user = bool(user)
        return cls(
            name=name,
            path=path,
            security_policy=security_policy,
            security_mode=security_mode,
            anonymous=anonymous,
            user=user if has_user else None,
            password=(password or "") if has_user else None,
        )

    @classmethod
    def default(
        cls,
        anonymous: bool,
        user: str | None,
        password: str | None,
        security_policy: SecurityPolicy = defaults.DEFAULT_SECURITY_POLICY,
        security_mode: SecurityMode = defaults.DEFAULT_SECURITY_MODE,
    ) -> "Endpoint":
        return cls.build(
            defaults.DEFAULT_ENDPOINT_NAME,
            defaults.DEFAULT_ENDPOINT_PATH,
            anonymous,
            user,
            password,
            security_policy,
            security_mode,
        )

    @classmethod
    def default_anonymous(cls) -> "Endpoint":
        return cls.default(True, None, None)

    @classmethod
    def default_user_pass(
        cls,
        user: str,
        password: str,
        security_policy: SecurityPolicy = defaults.DEFAULT_SECURITY_POLICY,
        security_mode: SecurityMode = defaults.DEFAULT_SECURITY_MODE,
    ) -> "Endpoint":
        """
        User / password access only. With the default policy and mode the
        endpoint has no security and is therefore rejected by validation:
        pass a real policy and mode to get a usable endpoint.
        """
        return cls.default(False, user, password, security_policy, security_mode)

    @classmethod
    def default_sample(cls) -> "Endpoint":
        """
        Turns on anonymous and user / password access with the built-in
        sample credentials, for sample code that wants everything available.
        Don't use in production.
        """
        return cls.default(True, defaults.SAMPLE_USER, defaults.SAMPLE_PASSWORD)

    def validate(self) -> list[Violation]:
        return validate_endpoint(self)

    def is_valid(self, logger: logging.Logger | None = None) -> bool:
        violations = self.validate()
        report(violations, logger or logging.getLogger("core.config"))
        return not violations

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "security_policy": str(self.security_policy),
            "security_mode": str(self.security_mode),
            "anonymous": self.anonymous,
            "user": self.user,
            "pass": self.password,
        }


@dataclass(frozen=True)
class ServerConfiguration:
    """
    Complete security and network configuration of a server.

    Instances are immutable snapshots: reconfiguring means building a new
    instance (``dataclasses.replace``) and handing it over as a whole.
    ``load`` does not validate; callers must check ``is_valid()`` before
    putting a loaded configuration into service. ``save`` always validates.
    """
    application_name: str
    application_uri: str
    product_uri: str
    pki_dir: str
    discovery_service: bool
    tcp_config: TransportConfig
    endpoints: tuple[Endpoint, ...] = field(default_factory=tuple)
    max_array_length: int = defaults.DEFAULT_MAX_ARRAY_LENGTH
    max_string_length: int = defaults.DEFAULT_MAX_STRING_LENGTH
    max_byte_string_length: int = defaults.DEFAULT_MAX_BYTE_STRING_LENGTH

    def __post_init__(self) -> None:
        object.__setattr__(self, "endpoints", tuple(self.endpoints))

    @classmethod
    def default(cls, endpoints: list[Endpoint] | tuple[Endpoint, ...]) -> "ServerConfiguration":
        application_name = defaults.DEFAULT_APPLICATION_NAME
        application_uri = f"urn:{application_name}"
        return cls(
            application_name=application_name,
            application_uri=application_uri,
            product_uri=application_uri,
            pki_dir=defaults.DEFAULT_PKI_DIR,
            discovery_service=True,
            tcp_config=TransportConfig(
                host=defaults.DEFAULT_HOST,
                port=defaults.DEFAULT_SERVER_PORT,
                hello_timeout=defaults.DEFAULT_HELLO_TIMEOUT_SECONDS,
            ),
            endpoints=tuple(endpoints),
            max_array_length=defaults.DEFAULT_MAX_ARRAY_LENGTH,
            max_string_length=defaults.DEFAULT_MAX_STRING_LENGTH,
            max_byte_string_length=defaults.DEFAULT_MAX_BYTE_STRING_LENGTH,
        )

    @classmethod
    def default_anonymous(cls) -> "ServerConfiguration":
        """
        Configuration for a server with no security and anonymous access enabled.
        """
        return cls.default([Endpoint.default_anonymous()])

    @classmethod
    def default_user_pass(
        cls,
        user: str,
        password: str,
        security_policy: SecurityPolicy = defaults.DEFAULT_SECURITY_POLICY,
        security_mode: SecurityMode = defaults.DEFAULT_SECURITY_MODE,
    ) -> "ServerConfiguration":
        return cls.default([Endpoint.default_user_pass(user, password, security_policy, security_mode)])

    @classmethod
    def default_sample(cls) -> "ServerConfiguration":
        """Everything enabled, sample credentials included. Not for production."""
        return cls.default([Endpoint.default_sample()])

    def validate(self) -> list[Violation]:
        return validate_configuration(self)

    def is_valid(self, logger: logging.Logger | None = None) -> bool:
        violations = self.validate()
        report(violations, logger or logging.getLogger("core.config"))
        return not violations

    def decoding_options(self) -> DecodingOptions:
        return DecodingOptions(
            max_array_length=self.max_array_length,
            max_string_length=self.max_string_length,
            max_byte_string_length=self.max_byte_string_length,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "application_name": self.application_name,
            "application_uri": self.application_uri,
            "product_uri": self.product_uri,
            "pki_dir": self.pki_dir,
            "discovery_service": self.discovery_service,
            "tcp_config": self.tcp_config.to_dict(),
            "endpoints": [e.to_dict() for e in self.endpoints],
            "max_array_length": self.max_array_length,
            "max_string_length": self.max_string_length,
            "max_byte_string_length": self.max_byte_string_length,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ServerConfiguration":
        """
        Build a configuration from a decoded document.
        Raises pydantic.ValidationError when ``data`` does not match the schema.
        """
        doc = ServerConfigDocument.model_validate(data)
        return cls(
            application_name=doc.application_name,
            application_uri=doc.application_uri,
            product_uri=doc.product_uri,
            pki_dir=doc.pki_dir,
            discovery_service=doc.discovery_service,
            tcp_config=TransportConfig(
                host=doc.tcp_config.host,
                port=doc.tcp_config.port,
                hello_timeout=doc.tcp_config.hello_timeout,
            ),
            endpoints=tuple(
                Endpoint(
                    name=e.name,
                    path=e.path,
                    security_policy=e.security_policy,
                    security_mode=e.security_mode,
                    anonymous=e.anonymous,
                    user=e.user,
                    password=e.password,
                )
                for e in doc.endpoints
            ),
            max_array_length=doc.max_array_length,
            max_string_length=doc.max_string_length,
            max_byte_string_length=doc.max_byte_string_length,
        )

    def save(self, path: str | Path) -> None:
        """
        Validate, then write the configuration atomically.

        An existing file keeps its permission bits. A new file is created
        readable by its owner only (0600), as it may hold passwords.
        """
        path = Path(path)
        data = self.to_dict()
        violations = self.validate() or validate_document(data)
        if violations:
            raise ConfigValidationError(violations, path=path)

        text = yaml.safe_dump(data, sort_keys=False)

        # The previous file is only replaced once the new content is fully on disk.
        try:
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                    f.flush()
                    os.fsync(f.fileno())
                with contextlib.suppress(FileNotFoundError):
                    os.chmod(tmp, stat.S_IMODE(path.stat().st_mode))
                os.replace(tmp, path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp)
                raise
        except OSError as ex:
            raise ConfigIOError(f"Cannot write configuration to {path}: {ex}", path=path) from ex

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: str | Path) -> "ServerConfiguration":
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as ex:
            raise ConfigIOError(f"Cannot read configuration from {path}: {ex}", path=path) from ex

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as ex:
            raise ConfigParseError(f"Configuration {path} is not valid YAML: {ex}", path=path) from ex

        try:
            return cls.from_dict(data)
        except ValidationError as ex:
            raise ConfigParseError(
                f"Configuration {path} does not match the expected schema:\n"
                + format_validation_error(ex),
                path=path,
            ) from ex

    def try_save(self, path: str | Path) -> bool:
        """Coarse form of ``save``: the cause of a failure is only logged."""
        try:
            self.save(path)
        except ConfigError as ex:
            logger.error(str(ex))
            return False
        return True

    @classmethod
    def try_load(cls, path: str | Path) -> "ServerConfiguration | None":
        """Coarse form of ``load``: the cause of a failure is only logged."""
        try:
            return cls.load(path)
        except ConfigError as ex:
            logger.error(str(ex))
            return None
