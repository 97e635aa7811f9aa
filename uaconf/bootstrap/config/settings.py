from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class UaSettings(BaseSettings):
    """
    Settings of the uactl tool itself, read from the environment.
    Command line arguments take precedence over these values.
    """
    model_config = SettingsConfigDict(
        env_prefix="UACONF_",
        extra="ignore"
    )

    config_file: Annotated[
        Path,
        Field(
            description=(
                "Path of the server configuration file.\n"
                "Relative paths are resolved against the current working directory."
            ),
            default=Path("uaserver.yaml")
        )
    ]

    log_level: Annotated[
        Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        Field(
            description="Logging verbosity of the tool.",
            default="INFO"
        )
    ]
