"""Pydantic configuration models for slideguard."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .. import __version__


class GuardConfig(BaseModel):
    """
    Root configuration model for image URL validation.

    The protocol allow-list is fixed to ``https`` and is not configurable.

    Example:
        config = GuardConfig(max_redirects=2, probe_timeout=3.0)

    YAML format:
        max_redirects: 2
        probe_timeout: 3.0
        validation_timeout: 20
        log_level: DEBUG
    """

    max_url_length: int = Field(2048, ge=1, description="Maximum accepted URL length in characters")
    max_redirects: int = Field(3, ge=0, description="Maximum redirect hops followed per URL")
    probe_timeout: float = Field(5.0, gt=0, description="Hard timeout for each HEAD redirect probe (seconds)")
    resolve_timeout: float = Field(5.0, gt=0, description="Timeout for each DNS lookup (seconds)")
    validation_timeout: Optional[float] = Field(
        None,
        gt=0,
        description="Overall deadline for validating one URL, including all hops (seconds)",
    )
    max_concurrent: int = Field(10, ge=1, description="Maximum URLs validated concurrently in a batch")
    user_agent: str = Field(
        f"slideguard-image-validator/{__version__}",
        description="User-Agent header sent with redirect probes",
    )
    reject_on_probe_failure: bool = Field(
        False,
        description="Reject a URL when its redirect probe fails instead of treating it as no redirect",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "GuardConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "GuardConfig":
        """Load config from YAML file."""
        return cls.from_yaml(path.read_text())
