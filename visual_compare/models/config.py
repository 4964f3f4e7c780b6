"""Configuration models for the visual comparison run."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from visual_compare.url_utils import artifact_key


class DeviceProfile(BaseModel):
    name: str = "Desktop"
    width: int = Field(default=1280, ge=1)
    height: int = Field(default=800, ge=1)


class EnvironmentConfig(BaseModel):
    name: str
    base_url: str

    @field_validator("base_url", mode="before")
    @classmethod
    def resolve_env_url(cls, v: str) -> str:
        if isinstance(v, str) and v.startswith("env:"):
            env_var = v[4:]
            resolved = os.environ.get(env_var)
            if resolved is None:
                raise ValueError(f"Environment variable '{env_var}' not set")
            return resolved
        return v

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        if not v or "/" in v or v == "diff":
            raise ValueError(f"Invalid environment name: {v!r}")
        return v


class CompareConfig(BaseModel):
    # Environments
    baseline: EnvironmentConfig = Field(
        default_factory=lambda: EnvironmentConfig(name="staging", base_url="")
    )
    candidate: EnvironmentConfig = Field(
        default_factory=lambda: EnvironmentConfig(name="prod", base_url="")
    )

    # Pages and viewport
    pages: list[str] = Field(default_factory=lambda: ["/"])
    device: DeviceProfile = Field(default_factory=DeviceProfile)

    # Capture
    navigation_timeout_seconds: int = 60
    full_page: bool = True
    user_agent: Optional[str] = None

    # Comparison
    pixel_threshold: float = Field(default=0.1, ge=0.0, le=1.0)
    max_parallel_comparisons: int = Field(default=4, ge=1)

    # Image probe
    tracking_patterns: list[str] = Field(
        default_factory=lambda: ["bat.bing.com", "tracking"]
    )
    image_probe_timeout_seconds: float = 15.0

    # Output
    screenshots_dir: str = "screenshots"
    report_formats: list[str] = Field(default_factory=lambda: ["html", "json"])
    report_output_dir: str = "."

    @field_validator("pages")
    @classmethod
    def normalize_pages(cls, v: list[str]) -> list[str]:
        pages = []
        keys: dict[str, str] = {}
        for p in v:
            p = p.strip()
            p = p if p.startswith("/") else "/" + p
            key = artifact_key(p)
            if key in keys:
                if keys[key] == p:
                    raise ValueError(f"Duplicate page: {p}")
                raise ValueError(
                    f"Pages {keys[key]} and {p} would share the screenshot name {key}"
                )
            keys[key] = p
            pages.append(p)
        return pages

    @model_validator(mode="after")
    def check_distinct_environments(self) -> "CompareConfig":
        if self.baseline.name == self.candidate.name:
            raise ValueError("Baseline and candidate environments need distinct names")
        return self

    @classmethod
    def load(cls, path: str | Path) -> "CompareConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
