"""
Declared static-site topology as plain data.

``build_topology`` turns a ``StackConfig`` into the full set of entities the
stack declares: two buckets (apex and www), one certificate, two CloudFront
distributions, one hosted zone and its alias records. Nothing here talks to
Pulumi, so the shape of the stack can be inspected and checked (see
``checks``) before any resource is registered with the engine. The
``components`` package turns each spec into Pulumi resources.

Entities reference each other by key (``"apex"``, ``"www"``, ``"site"``)
rather than by object, mirroring how the engine resolves references between
resources.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from components._helpers import (
    hostname,
    load_policy_template,
    normalize_domain,
    origin_id,
    render_policy,
    wildcard,
)
from config import StackConfig

APEX = "apex"
WWW = "www"
SITE_CERTIFICATE = "site"
SITE_ZONE = "site"

RECORD_TYPES = ("A", "AAAA", "CNAME")
ALIAS_RECORD_TYPES = ("A", "AAAA")

PROJECT_ROOT = Path(__file__).parent


@dataclass(frozen=True)
class CorsRule:
    allowed_headers: tuple[str, ...]
    allowed_methods: tuple[str, ...]
    allowed_origins: tuple[str, ...]
    max_age_seconds: int


@dataclass(frozen=True)
class WebsiteSpec:
    """
    Website-serving mode of a bucket.

    Either an index/error document pair or an unconditional redirect of every
    request to another host; never both.
    """

    index_document: str | None = None
    error_document: str | None = None
    redirect_host: str | None = None
    redirect_protocol: str = "https"

    def __post_init__(self):
        serves = self.index_document is not None
        redirects = self.redirect_host is not None
        if serves == redirects:
            raise ValueError(
                "website must either serve an index document or redirect all requests"
            )
        if self.error_document is not None and not serves:
            raise ValueError("error_document requires index_document")

    @property
    def is_redirect(self) -> bool:
        return self.redirect_host is not None


@dataclass(frozen=True)
class BucketSpec:
    key: str
    name: str
    policy: dict[str, Any]
    website: WebsiteSpec
    versioning: bool = False
    cors_rules: tuple[CorsRule, ...] = ()
    force_destroy: bool = True


@dataclass(frozen=True)
class CertificateSpec:
    key: str
    domain_name: str
    subject_alternative_names: tuple[str, ...]
    validation_method: str = "EMAIL"

    @property
    def names(self) -> list[str]:
        """Every name the certificate is issued for."""
        return [self.domain_name, *self.subject_alternative_names]


@dataclass(frozen=True)
class CacheBehaviorSpec:
    """Default cache behavior of a distribution."""

    target_origin_id: str
    viewer_protocol_policy: str
    min_ttl: int
    default_ttl: int
    max_ttl: int
    forward_query_string: bool = False
    forward_cookies: str = "none"
    forward_headers: tuple[str, ...] = ()
    allowed_methods: tuple[str, ...] = ("GET", "HEAD")
    cached_methods: tuple[str, ...] = ("GET", "HEAD")
    compress: bool = False

    def __post_init__(self):
        if self.min_ttl < 0:
            raise ValueError(f"min_ttl must not be negative, got {self.min_ttl}")
        if not self.min_ttl <= self.default_ttl <= self.max_ttl:
            raise ValueError(
                "TTL bounds must satisfy min <= default <= max, got "
                f"{self.min_ttl} / {self.default_ttl} / {self.max_ttl}"
            )


@dataclass(frozen=True)
class ErrorResponseSpec:
    error_code: int
    response_code: int
    response_page_path: str
    error_caching_min_ttl: int = 0


@dataclass(frozen=True)
class DistributionSpec:
    key: str
    origin_bucket: str
    origin_id: str
    aliases: tuple[str, ...]
    cache_behavior: CacheBehaviorSpec
    certificate: str
    error_responses: tuple[ErrorResponseSpec, ...] = ()
    default_root_object: str | None = None
    price_class: str = "PriceClass_All"
    ipv6: bool = False


@dataclass(frozen=True)
class ZoneSpec:
    key: str
    name: str


@dataclass(frozen=True)
class RecordSpec:
    """
    DNS record: either an alias to a distribution or literal values.

    ``alias_target`` names a distribution key; the record then points at that
    distribution's generated domain name and hosted zone id.
    """

    zone: str
    name: str
    type: str
    alias_target: str | None = None
    values: tuple[str, ...] = ()
    ttl: int | None = None

    def __post_init__(self):
        if self.type not in RECORD_TYPES:
            raise ValueError(
                f"record {self.name} has unsupported type {self.type!r}, expected one of "
                f"{', '.join(RECORD_TYPES)}"
            )
        if self.alias_target is not None and self.type not in ALIAS_RECORD_TYPES:
            raise ValueError(f"alias record {self.name} must be A or AAAA, got {self.type}")
        if (self.alias_target is None) == (not self.values):
            raise ValueError(
                f"record {self.name} {self.type} needs either an alias target or values"
            )
        if self.alias_target is not None and self.ttl is not None:
            raise ValueError(f"alias record {self.name} {self.type} cannot carry a TTL")

    @property
    def is_alias(self) -> bool:
        return self.alias_target is not None


@dataclass(frozen=True)
class Topology:
    domain_name: str
    zone: ZoneSpec
    certificate: CertificateSpec
    buckets: dict[str, BucketSpec] = field(default_factory=dict)
    distributions: dict[str, DistributionSpec] = field(default_factory=dict)
    records: tuple[RecordSpec, ...] = ()

    @property
    def alias_records(self) -> list[RecordSpec]:
        return [record for record in self.records if record.is_alias]


def _policy(template_path: str, bucket: str, base_dir: Path) -> dict[str, Any]:
    path = Path(template_path)
    if not path.is_absolute():
        path = base_dir / path
    return render_policy(load_policy_template(path), bucket)


def build_topology(config: StackConfig, base_dir: Path = PROJECT_ROOT) -> Topology:
    """
    Build the declared topology for one stack.

    Args:
        config: Stack configuration.
        base_dir: Directory relative policy template paths resolve against.

    Returns:
        Topology with apex and www buckets, distributions and alias records.

    Raises:
        ValueError: On an empty domain or one that is not the apex, a broken
            policy template or TTL bounds that are out of order.
    """
    domain = normalize_domain(config.domain_name)
    www_host = hostname(domain, "www")
    if www_host == domain:
        raise ValueError(
            f"domain_name must be the apex domain, got {domain}; the www host is derived from it"
        )

    buckets = {
        WWW: BucketSpec(
            key=WWW,
            name=www_host,
            policy=_policy(config.www_policy_template, www_host, base_dir),
            website=WebsiteSpec(
                index_document=config.index_document,
                error_document=config.error_document,
            ),
            versioning=config.enable_versioning,
            cors_rules=(
                CorsRule(
                    allowed_headers=("Authorization", "Content-Length"),
                    allowed_methods=("GET", "POST"),
                    allowed_origins=(f"https://{www_host}",),
                    max_age_seconds=config.cors_max_age_seconds,
                ),
            ),
            force_destroy=config.force_destroy,
        ),
        APEX: BucketSpec(
            key=APEX,
            name=domain,
            policy=_policy(config.apex_policy_template, domain, base_dir),
            website=WebsiteSpec(redirect_host=www_host, redirect_protocol="https"),
            force_destroy=config.force_destroy,
        ),
    }

    certificate = CertificateSpec(
        key=SITE_CERTIFICATE,
        domain_name=domain,
        subject_alternative_names=(wildcard(domain),),
        validation_method=config.certificate_validation_method,
    )

    distributions = {
        WWW: DistributionSpec(
            key=WWW,
            origin_bucket=WWW,
            origin_id=origin_id(www_host),
            aliases=(www_host,),
            cache_behavior=CacheBehaviorSpec(
                target_origin_id=origin_id(www_host),
                viewer_protocol_policy="redirect-to-https",
                min_ttl=config.www_min_ttl,
                default_ttl=config.www_default_ttl,
                max_ttl=config.www_max_ttl,
                forward_query_string=False,
                compress=True,
            ),
            certificate=certificate.key,
            error_responses=(
                ErrorResponseSpec(
                    error_code=404,
                    response_code=200,
                    response_page_path=config.not_found_page,
                ),
            ),
            default_root_object=config.index_document,
            price_class=config.price_class,
            ipv6=config.enable_ipv6,
        ),
        APEX: DistributionSpec(
            key=APEX,
            origin_bucket=APEX,
            origin_id=origin_id(domain),
            aliases=(domain,),
            cache_behavior=CacheBehaviorSpec(
                target_origin_id=origin_id(domain),
                viewer_protocol_policy="allow-all",
                min_ttl=config.apex_min_ttl,
                default_ttl=config.apex_default_ttl,
                max_ttl=config.apex_max_ttl,
                forward_query_string=True,
                forward_headers=("Origin",),
            ),
            certificate=certificate.key,
            price_class=config.price_class,
            ipv6=config.enable_ipv6,
        ),
    }

    record_types = ("A", "AAAA") if config.enable_ipv6 else ("A",)
    records = tuple(
        RecordSpec(zone=SITE_ZONE, name=alias, type=record_type, alias_target=dist.key)
        for dist in distributions.values()
        for alias in dist.aliases
        for record_type in record_types
    )

    return Topology(
        domain_name=domain,
        zone=ZoneSpec(key=SITE_ZONE, name=domain),
        certificate=certificate,
        buckets=buckets,
        distributions=distributions,
        records=records,
    )
