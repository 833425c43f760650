"""Run configuration."""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .normalize import NormalizerSettings, Strictness
from .paths import StoragePolicy

DEFAULT_LABEL = "tech-radar"
DEFAULT_BASE_DIR = "radar"
DEFAULT_POLICY = StoragePolicy.DATED_BY_TITLE
DEFAULT_STRICTNESS = Strictness.STRICT

# Lookup order per setting: our own variables first, then GitHub Action inputs.
ENV_KEYS: dict[str, tuple[str, ...]] = {
    "label": ("RADAR_LABEL", "INPUT_LABEL"),
    "base_dir": ("RADAR_TARGET_DIRECTORY", "INPUT_TARGET-DIRECTORY"),
    "policy": ("RADAR_STORAGE_POLICY", "INPUT_STORAGE-POLICY"),
    "strictness": ("RADAR_STRICTNESS", "INPUT_STRICTNESS"),
    "require_department": ("RADAR_REQUIRE_DEPARTMENT", "INPUT_REQUIRE-DEPARTMENT"),
}

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class RadarConfig:
    label: str = DEFAULT_LABEL
    base_dir: str = DEFAULT_BASE_DIR
    policy: StoragePolicy = DEFAULT_POLICY
    strictness: Strictness = DEFAULT_STRICTNESS
    require_department: bool | None = None

    @property
    def department_required(self) -> bool:
        if self.policy.requires_department:
            return True
        return bool(self.require_department)

    @property
    def normalizer_settings(self) -> NormalizerSettings:
        return NormalizerSettings(
            strictness=self.strictness,
            require_department=self.department_required,
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        label: str | None = None,
        base_dir: str | None = None,
        policy: str | None = None,
        strictness: str | None = None,
        require_department: bool | None = None,
    ) -> RadarConfig:
        env = os.environ if environ is None else environ
        label_value = label or _lookup(env, "label") or DEFAULT_LABEL
        base_value = base_dir or _lookup(env, "base_dir") or DEFAULT_BASE_DIR
        policy_value = policy or _lookup(env, "policy")
        strictness_value = strictness or _lookup(env, "strictness")
        if require_department is None:
            require_department = parse_flag(_lookup(env, "require_department"))
        return cls(
            label=label_value,
            base_dir=base_value,
            policy=StoragePolicy.parse(policy_value) if policy_value else DEFAULT_POLICY,
            strictness=(
                Strictness.parse(strictness_value) if strictness_value else DEFAULT_STRICTNESS
            ),
            require_department=require_department,
        )


def _lookup(env: Mapping[str, str], setting: str) -> str | None:
    for key in ENV_KEYS[setting]:
        value = env.get(key)
        if value and value.strip():
            return value.strip()
    return None


def parse_flag(value: str | None) -> bool | None:
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")
