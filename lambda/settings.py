import os
import re
from typing import Optional

from pydantic import BaseModel, Field, ValidationError


_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class ConfigurationError(Exception):
    pass


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    return value if value else default


def _build(model, **values):
    try:
        return model(**{k: v for k, v in values.items() if v is not None})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid {model.__name__}: {exc}") from exc


class GorgiasSettings(BaseModel):
    username: str = Field(min_length=1)
    api_key: str = Field(min_length=1)
    base_url: str = Field(min_length=1)
    special_case_email: Optional[str] = None
    special_case_code: str = "GRACE"

    @classmethod
    def from_env(cls) -> "GorgiasSettings":
        return _build(
            cls,
            username=_env("GORGIAS_USERNAME"),
            api_key=_env("GORGIAS_KEY"),
            base_url=_env("GORGIAS_BASE_URL"),
            special_case_email=_env("SPECIAL_CASE_EMAIL"),
            special_case_code=_env("SPECIAL_CASE_CODE"),
        )


class ReasonCodeSettings(BaseModel):
    path: str = "public/reasonCodes.xlsx"
    bucket: Optional[str] = None
    key: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ReasonCodeSettings":
        settings = _build(
            cls,
            path=_env("REASON_CODES_PATH"),
            bucket=_env("REASON_CODES_BUCKET"),
            key=_env("REASON_CODES_KEY"),
        )
        if settings.bucket and not settings.key:
            raise ConfigurationError("REASON_CODES_KEY is required when REASON_CODES_BUCKET is set")
        return settings


class MailSettings(BaseModel):
    sender: str = Field(min_length=1)
    password: str = Field(min_length=1)
    recipient: str = Field(min_length=1)
    host: str = "smtp.gmail.com"
    port: int = 465

    @classmethod
    def from_env(cls) -> "MailSettings":
        return _build(
            cls,
            sender=_env("EMAIL_SENDER"),
            password=_env("SENDER_PASSWORD"),
            recipient=_env("EMAIL_RECIPIENT"),
            host=_env("SMTP_HOST"),
            port=_env("SMTP_PORT"),
        )


class TransactionStoreSettings(BaseModel):
    cluster_arn: str = Field(min_length=1)
    secret_arn: str = Field(min_length=1)
    database: str = Field(min_length=1)
    table: str = "transactions"

    @classmethod
    def from_env(cls) -> Optional["TransactionStoreSettings"]:
        """Returns None when no cluster is configured; recording is optional."""
        cluster_arn = _env("TRANSACTIONS_CLUSTER_ARN")
        if not cluster_arn:
            return None
        settings = _build(
            cls,
            cluster_arn=cluster_arn,
            secret_arn=_env("TRANSACTIONS_SECRET_ARN"),
            database=_env("TRANSACTIONS_DATABASE"),
            table=_env("TRANSACTIONS_TABLE"),
        )
        if not _IDENTIFIER.match(settings.table):
            raise ConfigurationError(f"Invalid table name: {settings.table!r}")
        return settings
