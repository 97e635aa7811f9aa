from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from uaconf.core.models.defaults import UINT16_MAX, UINT32_MAX
from uaconf.core.models.security import SecurityMode, SecurityPolicy


class TransportDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: Annotated[
        str,
        Field(description="Hostname or IP address supplied in the endpoint URLs.")
    ]

    port: Annotated[
        int,
        Field(
            description="TCP port of the service.",
            ge=0,
            le=UINT16_MAX,
        )
    ]

    hello_timeout: Annotated[
        int,
        Field(
            description=(
                "Seconds a client has to complete the initial HELLO handshake\n"
                "before the server closes the connection."
            ),
            ge=0,
            le=UINT32_MAX,
        )
    ]


class EndpointDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Annotated[
        str,
        Field(description="Display name of the endpoint, used in diagnostics.")
    ]

    path: Annotated[
        str,
        Field(description="URL path distinguishing this endpoint from its siblings.")
    ]

    security_policy: Annotated[
        SecurityPolicy,
        Field(description="One of None, Basic128Rsa15, Basic256, Basic256Sha256.")
    ]

    security_mode: Annotated[
        SecurityMode,
        Field(description="One of None, Sign, SignAndEncrypt.")
    ]

    anonymous: Annotated[
        bool | None,
        Field(
            description="Allow anonymous access. Disabled when absent.",
            default=None
        )
    ]

    user: Annotated[
        str | None,
        Field(
            description="User name for user / password access.",
            default=None
        )
    ]

    password: Annotated[
        str | None,
        Field(
            description="Password paired with `user`. Both or neither must be set.",
            alias="pass",
            default=None
        )
    ]


class ServerConfigDocument(BaseModel):
    """
    Schema of the persisted server configuration file.

    Unknown keys are rejected at every level so that a typo in a field
    name surfaces as a parse error instead of a silently ignored setting.
    """
    model_config = ConfigDict(extra="forbid")

    application_name: Annotated[str, Field(description="An id for this server.")]
    application_uri: Annotated[str, Field(description="Application URI of this server.")]
    product_uri: Annotated[str, Field(description="Product URI.")]

    pki_dir: Annotated[
        str,
        Field(description="PKI folder, either absolute or relative to the executable.")
    ]

    discovery_service: Annotated[
        bool,
        Field(description="Turns the discovery service on or off.")
    ]

    tcp_config: Annotated[
        TransportDocument,
        Field(description="Transport level parameters.")
    ]

    endpoints: Annotated[
        list[EndpointDocument],
        Field(description="Endpoints exposed by the server, in order.")
    ]

    max_array_length: Annotated[
        int,
        Field(description="Max array length in elements.", ge=0, le=UINT32_MAX)
    ]

    max_string_length: Annotated[
        int,
        Field(description="Max string length in characters.", ge=0, le=UINT32_MAX)
    ]

    max_byte_string_length: Annotated[
        int,
        Field(description="Max byte string length in bytes.", ge=0, le=UINT32_MAX)
    ]
