"""
Pure helpers for DNS names, bucket policies and naming. Testable without Pulumi runtime.

Used by ``topology.build_topology`` (normalize_domain, hostname, origin_id,
render_policy), ``checks`` (hostname_covered) and the DNS component (slug).
No Pulumi types; all functions accept and return plain Python types so they
can be unit-tested without a Pulumi stack.
"""

import json
import re
from pathlib import Path
from string import Template
from typing import Any


def normalize_domain(
    domain: str,
) -> str:
    """
    Return domain lower-cased, stripped, and without a trailing dot.

    Route53 and CloudFront accept names without the trailing dot, and alias
    hostnames are compared against certificate names in this form.

    Raises:
        ValueError: If nothing is left after normalizing.
    """
    cleaned = (domain or "").strip().lower().rstrip(".")
    if not cleaned:
        raise ValueError("domain name is empty")
    return cleaned


def hostname(
    domain: str,
    subdomain: str,
) -> str:
    """
    Build a hostname like 'www.example.com' from domain and subdomain.

    Args:
        domain: Base domain (e.g. "example.com"); normalized first.
        subdomain: Leading label (e.g. "www").

    Returns:
        Hostname without trailing dot. Idempotent if domain already starts
        with the subdomain label.
    """
    base = normalize_domain(domain)
    return base if base.startswith(f"{subdomain}.") else f"{subdomain}.{base}"


def wildcard(
    domain: str,
) -> str:
    """Return the single-label wildcard name for domain ('*.example.com')."""
    return f"*.{normalize_domain(domain)}"


def origin_id(
    bucket_name: str,
) -> str:
    """CloudFront origin id for a bucket-backed origin."""
    return f"S3-{bucket_name}"


def slug(
    value: str,
) -> str:
    """
    Turn a DNS name into a Pulumi-friendly resource name fragment.

    'www.Example.com.' -> 'www-example-com'
    """
    value = (value or "").strip().lower().rstrip(".")
    value = re.sub(r"[^a-z0-9-]", "-", value)
    return re.sub(r"-{2,}", "-", value).strip("-")


def hostname_covered(
    name: str,
    certificate_names: list[str],
) -> bool:
    """
    Return True if name is matched by one of the certificate names.

    A wildcard entry ('*.example.com') matches exactly one extra label: it
    covers 'www.example.com' but neither 'example.com' nor
    'a.b.example.com'.
    """
    name = normalize_domain(name)
    for candidate in certificate_names:
        candidate = normalize_domain(candidate)
        if candidate == name:
            return True
        if candidate.startswith("*."):
            head, _, tail = name.partition(".")
            if head and tail == candidate[2:]:
                return True
    return False


def load_policy_template(
    path: str | Path,
) -> str:
    """Read a policy template file as text."""
    return Path(path).read_text(encoding="utf-8")


def render_policy(
    template: str,
    bucket: str,
) -> dict[str, Any]:
    """
    Substitute the bucket name into a JSON policy template and parse it.

    The template uses ``${bucket}`` as its only placeholder, e.g.
    ``"Resource": "arn:aws:s3:::${bucket}/*"``.

    Raises:
        ValueError: If the template uses another placeholder or the result
            is not valid JSON.
    """
    try:
        rendered = Template(template).substitute(bucket=bucket)
    except KeyError as exc:
        raise ValueError(f"unknown placeholder in policy template: {exc}") from exc
    try:
        return json.loads(rendered)
    except json.JSONDecodeError as exc:
        raise ValueError(f"policy template for {bucket} is not valid JSON: {exc}") from exc


def deploy_command(
    content_dir: str,
    bucket: str,
) -> str:
    """Object-sync command that uploads site content to the bucket."""
    return f"aws s3 sync {content_dir} s3://{bucket} --delete"


def invalidate_command(
    distribution_id: str,
) -> str:
    """Cache invalidation command to run against a distribution after deploy."""
    return f'aws cloudfront create-invalidation --distribution-id {distribution_id} --paths "/*"'
