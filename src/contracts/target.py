from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Target(BaseModel):
    """
    Data model representing a single monitored endpoint and its probe cadence.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    interval_seconds: float = Field(default=0.5, gt=0)

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"target url must be an absolute http(s) URL: {value!r}")
        return value

    def __str__(self):
        return self.url
