from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from staffscope.security.decisions import Operation
from staffscope.security.roles import RoleToken


class AuthConfig(BaseModel):
    principal_header: str = "Authorization"
    bearer_prefix: str = "Bearer"


class DefaultRule(BaseModel):
    auth_required: bool = True
    required_roles: list[RoleToken] = Field(default_factory=list)


class RouteRule(BaseModel):
    path: str
    methods: list[str] = Field(default_factory=lambda: ["GET"])

    auth_required: bool | None = None
    required_roles: list[RoleToken] = Field(default_factory=list)
    operation: Operation | None = None

    @field_validator("required_roles", mode="before")
    @classmethod
    def _parse_roles(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [RoleToken.parse(v) if isinstance(v, str) else v for v in value]
        return value

    def normalized_methods(self) -> set[str]:
        return {m.upper() for m in self.methods}


class AccessConfigModel(BaseModel):
    auth: AuthConfig = Field(default_factory=AuthConfig)
    default: DefaultRule = Field(default_factory=DefaultRule)
    routes: list[RouteRule] = Field(default_factory=list)


@dataclass(frozen=True)
class EffectiveRule:
    """
    Fully-resolved rule (defaults applied) for a particular request.
    """

    auth_required: bool
    required_roles: frozenset[RoleToken]
    operation: Operation | None


def _path_template_to_regex(path_template: str) -> re.Pattern[str]:
    # "/employees/{id}" -> r"^/employees/[^/]+$"
    regex = re.sub(r"\{[^/]+\}", r"[^/]+", path_template)
    return re.compile(rf"^{regex}$")


class AccessConfig:
    """
    Runtime helper around the validated route-access config.
    """

    def __init__(self, model: AccessConfigModel):
        self.model = model

        self._exact_rules: dict[str, list[RouteRule]] = {}
        for r in self.model.routes:
            self._exact_rules.setdefault(r.path, []).append(r)
        self._compiled_rules = [(_path_template_to_regex(rule.path), rule) for rule in self.model.routes]

    @property
    def auth(self) -> AuthConfig:
        return self.model.auth

    def match(self, path: str, method: str) -> EffectiveRule:
        """
        Find the best matching rule for (path, method), then apply defaults.

        Exact paths win over templates, so `/employees/search` is never taken
        for `/employees/{id}`.
        """

        method = method.upper()
        default = self.model.default

        for candidate in self._exact_rules.get(path, []):
            if method in candidate.normalized_methods():
                return _effective(candidate, default)

        for regex, candidate in self._compiled_rules:
            if method not in candidate.normalized_methods():
                continue
            if regex.match(path):
                return _effective(candidate, default)

        return EffectiveRule(
            auth_required=default.auth_required,
            required_roles=frozenset(default.required_roles),
            operation=None,
        )


def _effective(rule: RouteRule, default: DefaultRule) -> EffectiveRule:
    # Any guard on the rule implies authentication, even under a public default.
    inferred_auth_required = default.auth_required or bool(rule.required_roles) or rule.operation is not None

    return EffectiveRule(
        auth_required=inferred_auth_required if rule.auth_required is None else rule.auth_required,
        required_roles=frozenset(rule.required_roles or default.required_roles),
        operation=rule.operation,
    )


def parse_access_config(raw: dict[str, Any]) -> AccessConfig:
    if "access" not in raw:
        raise ValueError("Missing top-level 'access' key in access config")
    return AccessConfig(AccessConfigModel.model_validate(raw["access"]))


def load_access_config(path: Path) -> AccessConfig:
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}

    if "access" not in raw:
        raise ValueError(f"Missing top-level 'access' key in config: {path}")
    return parse_access_config(raw)
