"""
Server configuration, stored as JSON.
"""
from typing import Optional

from serde import serde
from serde.json import from_json, to_json


@serde
class Config:
    repo: str
    host: str = "0.0.0.0"
    port: int = 8080
    revision: str = "HEAD"
    mountpoint: Optional[str] = None
    log_level: str = "INFO"


def load_config(path: str) -> Config:
    with open(path, "r") as f:
        return from_json(Config, f.read())


def save_config(config: Config, path: str) -> None:
    with open(path, "w") as f:
        f.write(to_json(config))
