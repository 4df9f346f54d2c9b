"""
Static-site infrastructure components.

Each piece of the topology is encapsulated in its own ComponentResource for
clear ownership, testability, and reuse. Use from the Pulumi entrypoint
(e.g. __main__.py) with specs from ``topology.build_topology`` and output
chaining:

- **SiteBucket**: S3 website bucket (serve or redirect); exposes
  website_endpoint as the CloudFront origin.
- **SiteCertificate**: ACM certificate in us-east-1; exposes the validated
  certificate_arn so distributions wait for validation.
- **SiteDistribution**: CloudFront in front of one bucket; exposes
  domain_name and hosted_zone_id for alias records.
- **SiteZone**: Route53 hosted zone; exposes zone_id and name_servers.
- **SiteRecords**: alias (and literal) records in the zone.
"""

from components.cdn import SiteDistribution
from components.certificate import SiteCertificate
from components.dns import SiteRecords, SiteZone
from components.storage import SiteBucket

__all__ = ["SiteBucket", "SiteCertificate", "SiteDistribution", "SiteRecords", "SiteZone"]
