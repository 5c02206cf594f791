"""Configuration schema for the readiness checker, validated with Pydantic.

Configuration errors surface as ``pydantic.ValidationError`` before any
file is read.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator


class CheckerConfig(BaseModel):
    """Top-level configuration for one report generation.

    Attributes:
        include_dev_dependencies: Add ``devDependencies`` to the candidates
            when no name filter is given.
        include_peer_dependencies: Add ``peerDependencies`` likewise.
        skip_type_packages: Drop ``@types/*`` candidates; they ship no code.
        max_workers: Worker threads for package walks.
        esm_conditions: Export-map conditions in preference order when
            resolving from an ES module.
        cjs_conditions: Export-map conditions when resolving from ``require``.
        use_module_field: Prefer the bundler ``module`` field over ``main``
            for packages without an export map.
        extra_builtins: Additional names treated as platform modules.
    """

    include_dev_dependencies: bool = False
    include_peer_dependencies: bool = False
    skip_type_packages: bool = True
    max_workers: int = Field(default=8, ge=1, le=64)
    esm_conditions: List[str] = Field(
        default_factory=lambda: ["import", "module", "node", "default"]
    )
    cjs_conditions: List[str] = Field(
        default_factory=lambda: ["require", "node", "default"]
    )
    use_module_field: bool = False
    extra_builtins: List[str] = Field(default_factory=list)

    model_config = {"extra": "forbid"}

    @field_validator("esm_conditions", "cjs_conditions")
    @classmethod
    def validate_conditions(cls, v: List[str]) -> List[str]:
        """Conditions must be non-empty names and include ``default``."""
        if not v:
            raise ValueError("condition list must not be empty")
        for condition in v:
            if not condition or not isinstance(condition, str):
                raise ValueError(f"Invalid condition name: {condition!r}")
        if "default" not in v:
            raise ValueError("condition list must include 'default'")
        return v

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckerConfig":
        """Create configuration from a dictionary.

        Raises:
            ValidationError: If configuration is invalid.
        """
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
