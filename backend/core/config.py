import json
import os
import pathlib
from dataclasses import dataclass, field


@dataclass
class DatabaseConfig:
    host: str = "localhost"
    port: int = 5432
    name: str = "pishkhan"
    user: str = "pishkhan"
    password: str = ""

    @property
    def conninfo(self) -> str:
        return (
            f"host={self.host} port={self.port} "
            f"dbname={self.name} user={self.user} password={self.password}"
        )


@dataclass
class SessionConfig:
    expire_minutes: int = 60 * 12
    secure_cookie: bool = True


@dataclass
class JobsConfig:
    notify_channel: str = "n8n_job_updates"
    listen: bool = True


@dataclass
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    jobs: JobsConfig = field(default_factory=JobsConfig)

    @classmethod
    def load(cls) -> "AppConfig":
        config_path = os.environ.get("CONFIG_FILE", "/run/secrets/config.json")
        path = pathlib.Path(config_path)

        if path.exists():
            with open(path) as f:
                data = json.load(f)
            return cls(
                database=DatabaseConfig(**data.get("database", {})),
                session=SessionConfig(**data.get("session", {})),
                jobs=JobsConfig(**data.get("jobs", {})),
            )

        print(f"Warning: Config file not found at {config_path}")
        return cls()
