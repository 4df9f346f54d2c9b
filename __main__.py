"""
Static website hosting - Pulumi entrypoint.

Builds the declared topology from Pulumi config, checks it, then wires five
ComponentResources using output chaining:

- **SiteZone**: Route53 hosted zone for the apex domain. The caller must
  delegate the domain at the registrar to the exported name servers.
- **SiteCertificate**: ACM certificate (apex + wildcard) in us-east-1. Its
  validated ARN is passed to both distributions, so they wait for validation.
- **SiteBucket** x2: ``www`` serves the content, apex redirects every request
  to ``https://www.<domain>``. Website endpoints become CloudFront origins.
- **SiteDistribution** x2: one per bucket, with deliberately different cache
  behaviors (apex forwards query strings and ``Origin``; www does not).
- **SiteRecords**: A (and AAAA) alias records for apex and www, targeting the
  distributions' generated domain names.

Stack exports: name_servers, apex_bucket, www_bucket, apex_distribution_domain,
www_distribution_domain, www_distribution_id, certificate_arn, site_url,
deploy_command, invalidate_command.
"""

import pulumi
import pulumi_aws as aws

from checks import TopologyError, validate
from components import SiteBucket, SiteCertificate, SiteDistribution, SiteRecords, SiteZone
from components._helpers import deploy_command, invalidate_command
from components.certificate import CLOUDFRONT_CERTIFICATE_REGION
from config import StackConfig
from topology import APEX, WWW, build_topology


def _component_name(project_name: str, environment: str, prefix: str) -> str:
    return f"{prefix}-{project_name}-{environment}"


def main():
    """
    Declare zone, certificate, buckets, distributions and alias records.

    Reads config, builds and validates the topology (raising before any
    resource is registered if it is inconsistent), instantiates each
    component, chains bucket endpoints into distributions and distributions
    into alias records, and exports the values needed for the manual steps
    (registrar delegation, content sync, cache invalidation).
    """
    config = StackConfig.from_pulumi_config(pulumi.Config())
    try:
        topology = validate(build_topology(config))
    except TopologyError as exc:
        for violation in exc.violations:
            pulumi.log.error(violation)
        raise

    def name(prefix: str) -> str:
        return _component_name(config.project_name, config.environment, prefix)

    tags = {"Project": config.project_name, "Environment": config.environment}

    pulumi.log.info(
        f"declaring static site for {topology.domain_name}: "
        f"{len(topology.buckets)} buckets, {len(topology.distributions)} distributions, "
        f"{len(topology.records)} records"
    )

    zone = SiteZone(name=name("zone"), spec=topology.zone, tags=tags)

    certificate_provider = aws.Provider(
        name("use1"),
        region=CLOUDFRONT_CERTIFICATE_REGION,
    )
    certificate = SiteCertificate(
        name=name("cert"),
        spec=topology.certificate,
        provider=certificate_provider,
        zone_id=zone.zone_id,
        tags=tags,
    )

    buckets = {
        key: SiteBucket(name=name(f"{key}-bucket"), spec=spec, tags=tags)
        for key, spec in topology.buckets.items()
    }

    distributions = {
        key: SiteDistribution(
            name=name(f"{key}-cdn"),
            spec=spec,
            origin_domain_name=buckets[spec.origin_bucket].website_endpoint,
            certificate_arn=certificate.certificate_arn,
            tags=tags,
        )
        for key, spec in topology.distributions.items()
    }

    SiteRecords(
        name=name("records"),
        zone_id=zone.zone_id,
        records=list(topology.records),
        targets=distributions,
    )

    www_bucket = topology.buckets[WWW].name
    for output_name, value in [
        ("name_servers", zone.name_servers),
        ("apex_bucket", buckets[APEX].bucket_name),
        ("www_bucket", buckets[WWW].bucket_name),
        ("apex_distribution_domain", distributions[APEX].domain_name),
        ("www_distribution_domain", distributions[WWW].domain_name),
        ("www_distribution_id", distributions[WWW].distribution_id),
        ("certificate_arn", certificate.certificate_arn),
        ("site_url", f"https://{www_bucket}"),
        ("deploy_command", deploy_command(config.content_dir, www_bucket)),
        ("invalidate_command", distributions[WWW].distribution_id.apply(invalidate_command)),
    ]:
        pulumi.export(output_name, value)


if __name__ == "__main__":
    main()
