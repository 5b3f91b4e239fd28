from typing import Annotated, Literal

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from gensocket.bootstrap.config.loader import get_configfile


class SocketSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GENSOCKET_",
        extra="ignore"
    )

    url: Annotated[
        str,
        Field(
            description=(
                "Websocket endpoint of the channel server, e.g.\n"
                "'ws://localhost:4000/socket/websocket'. The protocol version and\n"
                "the query params are appended when connecting."
            )
        )
    ]

    query_params: Annotated[
        dict[str, str],
        Field(
            description="Query params sent on connect (tokens, client ids...).",
            default_factory=dict
        )
    ]

    auto_connect: Annotated[
        bool,
        Field(
            description="Connect as soon as the bridge is started.",
            default=True
        )
    ]

    serializer: Annotated[
        Literal["json", "gzip_json", "msgpack"],
        Field(
            description=(
                "Wire codec:\n"
                "  json      → text frames\n"
                "  gzip_json → gzip compressed JSON in binary frames\n"
                "  msgpack   → MsgPack binary frames"
            ),
            default="json"
        )
    ]

    log_level: Annotated[
        Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        Field(
            description="Logging verbosity.",
            default="INFO"
        )
    ]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Priority: init kwargs > ENV > YAML file
        sources: tuple[PydanticBaseSettingsSource, ...] = (init_settings, env_settings)
        if (file := get_configfile()) is not None:
            sources += (YamlConfigSettingsSource(settings_cls, yaml_file=file),)
        return sources
