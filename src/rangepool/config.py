import tomllib
from pathlib import Path
from typing import Literal

import tomlkit
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rangepool.logging import logger

CONFIG_DIR = Path.home() / ".config" / "rangepool"
CONFIG_FILE = CONFIG_DIR / "config.toml"

# keccak256 of the pool creation code. Every pool shares the same code, so the address of a pool
# depends only on the factory address and the salt derived from its identity tuple.
DEFAULT_POOL_INIT_HASH = "0x8a6f1b3e5a9d4c07b2e1f3d6c58a9e0b4d7c2f1a6e3b9d8c5f0a4e7b1c2d3e4f"

type LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class MathSettings(BaseModel):
    # Maximum entries held by each memoised tick & price math function
    cache_size: int = Field(default=1024, ge=0)


class LoggingSettings(BaseModel):
    level: LogLevel = "INFO"


class FactorySettings(BaseModel):
    pool_init_hash: str = DEFAULT_POOL_INIT_HASH

    @field_validator("pool_init_hash", mode="after")
    def validate_init_hash(
        cls,  # noqa: N805
        init_hash: str,
    ) -> str:
        """
        Validate that the hash is a 0x-prefixed 32 byte hex string.
        """

        if not init_hash.startswith("0x") or len(init_hash) != 66:  # noqa: PLR2004
            raise ValueError(f"{init_hash} is not a 32 byte hex string")
        int(init_hash, 16)
        return init_hash.lower()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RANGEPOOL_",
        env_nested_delimiter="__",
    )

    math: MathSettings = MathSettings()
    logging: LoggingSettings = LoggingSettings()
    factory: FactorySettings = FactorySettings()


def load_config_from_file(config_path: Path) -> Settings:
    return Settings.model_validate(
        tomllib.loads(
            config_path.read_text(),
        ),
    )


def save_config_to_file(config: Settings, config_path: Path = CONFIG_FILE) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        tomlkit.dumps(
            config.model_dump(),
        ),
    )
    logger.info(f"Saved configuration to {config_path}.")


def apply_settings(config: Settings) -> None:
    logger.setLevel(config.logging.level)


if CONFIG_FILE.exists():
    settings = load_config_from_file(CONFIG_FILE)
    logger.debug(f"Loaded configuration from {CONFIG_FILE}.")
else:
    settings = Settings()

apply_settings(settings)
