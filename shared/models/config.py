from typing import Literal

from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Describes one environment setting a client needs before it can boot.

    Attributes:
        env_key (str): Key suffix of the variable. The client prefixes it, e.g. "BASE_URL" -> "CMS_WORDPRESS_BASE_URL".
        val_type (str): How the raw value is parsed: "string", "number", "bool" or "list".
        default (str | int | float | bool | list | None): Value used when the variable is unset. None marks the setting as required.
    """

    env_key: str
    val_type: Literal["string", "number", "bool", "list"] = "string"
    default: str | int | float | bool | list | None = None
