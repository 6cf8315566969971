# config/settings.py
from __future__ import annotations
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from domain.errors import ConfigError
from domain.models import FindType

load_dotenv()

# Credenciales IMAP opcionales desde entorno / .env (si no están en el fichero)
ENV_IMAP_USER = "FLOWMON_IMAP_USER"
ENV_IMAP_PASS = "FLOWMON_IMAP_PASS"


class ImapSettings(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    host: str = Field(min_length=1)
    port: int = Field(default=993, gt=0)
    user: str = Field(min_length=1)
    password: str = Field(alias="pass", min_length=1)
    folder: str = "INBOX"
    ssl: bool = True
    tls_verify: bool = True
    find_type: FindType = FindType.SEARCH


class Constraints(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_time_to_try: int = Field(default=30, gt=0)
    retry_frequency: int = Field(default=5, gt=0)
    send_timeout: int = Field(default=60, gt=0)


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    test_address: str = Field(min_length=1)
    sendmail_exe: Path
    from_address: str | None = None
    imap: ImapSettings
    constraints: Constraints = Field(default_factory=Constraints)

    @field_validator("sendmail_exe")
    @classmethod
    def _sendmail_is_executable(cls, v: Path) -> Path:
        if not (v.is_file() and os.access(v, os.X_OK)):
            raise ValueError(f"{v} is not an executable file")
        return v

    # ───────── helpers ─────────
    def sendmail_cmd_parts(self) -> list[str]:
        # -t: destinatarios desde cabeceras; -oi: no cortar en "."; -oem: errores por correo
        return [str(self.sendmail_exe), "-t", "-oi", "-oem"]


def default_conf_path(program: str | Path) -> Path:
    """Ruta del programa con la extensión cambiada por .conf (misma carpeta)."""
    return Path(program).resolve().with_suffix(".conf")


def _apply_env_credentials(data: dict[str, Any]) -> None:
    imap = data.get("imap")
    if not isinstance(imap, dict):
        return
    if "user" not in imap and os.getenv(ENV_IMAP_USER):
        imap["user"] = os.environ[ENV_IMAP_USER]
    if "pass" not in imap and os.getenv(ENV_IMAP_PASS):
        imap["pass"] = os.environ[ENV_IMAP_PASS]


def _format_errors(err: ValidationError) -> str:
    out = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e["loc"]) or "<root>"
        if e["type"] == "missing":
            out.append(f"Missing {loc}")
        else:
            out.append(f"{loc}: {e['msg']}")
    return "; ".join(out)


def load_settings(path: str | Path) -> Settings:
    fp = Path(path)
    try:
        text = fp.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {fp}: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Bad config file {fp}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Bad config file {fp}: expected a mapping at top level")

    _apply_env_credentials(data)
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Conf errors: {_format_errors(exc)}") from exc
