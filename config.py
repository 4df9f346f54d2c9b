"""
Stack configuration loaded from pulumi.Config().

Provides a typed, immutable view of stack settings. All settings are read from
Pulumi config (e.g. Pulumi.<stack>.yaml or pulumi config set). domain_name,
environment and project_name are required; every other key has a default
matching the usual static-site setup (EMAIL certificate validation, forced
bucket destroy, one-year TTLs on www). Used by __main__.main() to name
resources and by topology.build_topology() to shape every declared entity.
"""

from dataclasses import dataclass
from typing import Any, Callable

import pulumi

DEFAULT_POLICY_TEMPLATE = "policies/s3-public-read.json"

VALIDATION_METHODS = ("EMAIL", "DNS")

ONE_YEAR = 31536000


_TRUE_VALUES = ("1", "true", "yes")
_FALSE_VALUES = ("0", "false", "no")


def _parse_bool(key: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"config key {key!r} must be a boolean, got {raw!r}")


def _parse_int(key: str, raw: Any) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"config key {key!r} must be an integer, got {raw!r}") from exc


def _require_str(config: pulumi.Config, key: str) -> str:
    return config.require(key)


def _optional_str(default: str) -> Callable[[pulumi.Config, str], str]:
    def parse(config: pulumi.Config, key: str) -> str:
        return config.get(key) or default

    return parse


def _optional_bool(default: bool) -> Callable[[pulumi.Config, str], bool]:
    def parse(config: pulumi.Config, key: str) -> bool:
        raw = config.get(key)
        return default if raw is None else _parse_bool(key, raw)

    return parse


def _optional_int(default: int) -> Callable[[pulumi.Config, str], int]:
    def parse(config: pulumi.Config, key: str) -> int:
        raw = config.get(key)
        return default if raw is None else _parse_int(key, raw)

    return parse


def _validation_method(config: pulumi.Config, key: str) -> str:
    method = (config.get(key) or "EMAIL").strip().upper()
    if method not in VALIDATION_METHODS:
        raise ValueError(
            f"config key {key!r} must be one of {', '.join(VALIDATION_METHODS)}, got {method!r}"
        )
    return method


# (key, parser); parser receives (config, key) and returns value.
_CONFIG_SPEC: list[tuple[str, Callable[[pulumi.Config, str], Any]]] = [
    ("domain_name", _require_str),
    ("environment", _require_str),
    ("project_name", _require_str),
    ("certificate_validation_method", _validation_method),
    ("index_document", _optional_str("index.html")),
    ("error_document", _optional_str("404.html")),
    ("not_found_page", _optional_str("/404.html")),
    ("force_destroy", _optional_bool(True)),
    ("enable_versioning", _optional_bool(True)),
    ("enable_ipv6", _optional_bool(False)),
    ("cors_max_age_seconds", _optional_int(3000)),
    ("price_class", _optional_str("PriceClass_All")),
    ("www_min_ttl", _optional_int(ONE_YEAR)),
    ("www_default_ttl", _optional_int(ONE_YEAR)),
    ("www_max_ttl", _optional_int(ONE_YEAR)),
    ("apex_min_ttl", _optional_int(0)),
    ("apex_default_ttl", _optional_int(86400)),
    ("apex_max_ttl", _optional_int(ONE_YEAR)),
    ("apex_policy_template", _optional_str(DEFAULT_POLICY_TEMPLATE)),
    ("www_policy_template", _optional_str(DEFAULT_POLICY_TEMPLATE)),
    ("content_dir", _optional_str("public")),
]


@dataclass(frozen=True)
class StackConfig:
    """
    Stack configuration from Pulumi config.

    Attributes:
        domain_name: Apex domain; the zone, apex bucket and certificate use it (required).
        environment: Environment label used in resource naming (required).
        project_name: Project name used in resource naming (required).
        certificate_validation_method: "EMAIL" (manual approval) or "DNS".
        index_document: Index document of the www bucket website.
        error_document: Error document of the www bucket website.
        not_found_page: Page served with status 200 when the www origin returns 404.
        force_destroy: Allow deleting buckets that still hold objects.
        enable_versioning: Turn on object versioning for the www bucket.
        enable_ipv6: Enable IPv6 on both distributions and add AAAA alias records.
        cors_max_age_seconds: CORS preflight cache time on the www bucket.
        price_class: CloudFront price class for both distributions.
        www_min_ttl, www_default_ttl, www_max_ttl: TTL bounds for the www distribution.
        apex_min_ttl, apex_default_ttl, apex_max_ttl: TTL bounds for the apex distribution.
        apex_policy_template, www_policy_template: JSON policy templates, ``${bucket}``
            is substituted with the bucket name.
        content_dir: Local directory named in the exported deploy command.
    """

    domain_name: str
    environment: str
    project_name: str
    certificate_validation_method: str = "EMAIL"
    index_document: str = "index.html"
    error_document: str = "404.html"
    not_found_page: str = "/404.html"
    force_destroy: bool = True
    enable_versioning: bool = True
    enable_ipv6: bool = False
    cors_max_age_seconds: int = 3000
    price_class: str = "PriceClass_All"
    www_min_ttl: int = ONE_YEAR
    www_default_ttl: int = ONE_YEAR
    www_max_ttl: int = ONE_YEAR
    apex_min_ttl: int = 0
    apex_default_ttl: int = 86400
    apex_max_ttl: int = ONE_YEAR
    apex_policy_template: str = DEFAULT_POLICY_TEMPLATE
    www_policy_template: str = DEFAULT_POLICY_TEMPLATE
    content_dir: str = "public"

    @classmethod
    def from_pulumi_config(cls, config: pulumi.Config) -> "StackConfig":
        """
        Build StackConfig from pulumi.Config(). Required keys raise
        pulumi.ConfigMissingError when absent; malformed values raise ValueError.
        """
        kwargs = {key: parser(config, key) for key, parser in _CONFIG_SPEC}
        return cls(**kwargs)
