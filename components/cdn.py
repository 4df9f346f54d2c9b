"""
CloudFront distribution in front of one website bucket.

The origin is the bucket's S3 website endpoint (custom origin, HTTP only:
website endpoints do not speak TLS), so bucket-level redirects and index
documents keep working behind the CDN. The cache behavior, error remapping,
aliases and price class come from a ``DistributionSpec``; the viewer
certificate is the validated ACM certificate shared by both distributions.
``domain_name`` and ``hosted_zone_id`` are ``Output[str]`` so alias records
can target the distribution.
"""

from typing import TYPE_CHECKING

import pulumi
import pulumi_aws as aws

if TYPE_CHECKING:
    from topology import CacheBehaviorSpec, DistributionSpec

ID: str = "staticsite:aws:SiteDistribution"

MINIMUM_PROTOCOL_VERSION = "TLSv1.2_2021"


def _forwarded_values(
    behavior: "CacheBehaviorSpec",
) -> aws.cloudfront.DistributionDefaultCacheBehaviorForwardedValuesArgs:
    return aws.cloudfront.DistributionDefaultCacheBehaviorForwardedValuesArgs(
        query_string=behavior.forward_query_string,
        headers=list(behavior.forward_headers) or None,
        cookies=aws.cloudfront.DistributionDefaultCacheBehaviorForwardedValuesCookiesArgs(
            forward=behavior.forward_cookies,
        ),
    )


class SiteDistribution(pulumi.ComponentResource):
    """
    CloudFront distribution (website-endpoint origin, ACM certificate, aliases).

    Resources: Distribution.
    """

    def __init__(
        self,
        name: str,
        spec: "DistributionSpec",
        origin_domain_name: pulumi.Input[str],
        certificate_arn: pulumi.Input[str],
        tags: dict[str, str] | None = None,
    ):
        """
        Create the distribution.

        Args:
            name: Pulumi resource name.
            spec: Declared distribution (origin id, aliases, cache behavior).
            origin_domain_name: Website endpoint of the origin bucket.
            certificate_arn: Validated certificate ARN; passing the validation
                output makes the engine wait for validation first.
            tags: Tags applied to the distribution.

        Outputs (set on self, registered for the component):
            distribution_id: Distribution id (for cache invalidations).
            domain_name: Generated *.cloudfront.net name (alias record target).
            hosted_zone_id: CloudFront hosted zone id (alias record zone).
        """
        super().__init__(ID, name)

        behavior = spec.cache_behavior

        origins = [
            aws.cloudfront.DistributionOriginArgs(
                domain_name=origin_domain_name,
                origin_id=spec.origin_id,
                custom_origin_config=aws.cloudfront.DistributionOriginCustomOriginConfigArgs(
                    http_port=80,
                    https_port=443,
                    origin_protocol_policy="http-only",
                    origin_ssl_protocols=["TLSv1.2"],
                ),
            )
        ]

        default_cache_behavior = aws.cloudfront.DistributionDefaultCacheBehaviorArgs(
            target_origin_id=behavior.target_origin_id,
            viewer_protocol_policy=behavior.viewer_protocol_policy,
            allowed_methods=list(behavior.allowed_methods),
            cached_methods=list(behavior.cached_methods),
            compress=behavior.compress,
            min_ttl=behavior.min_ttl,
            default_ttl=behavior.default_ttl,
            max_ttl=behavior.max_ttl,
            forwarded_values=_forwarded_values(behavior),
        )

        custom_error_responses = [
            aws.cloudfront.DistributionCustomErrorResponseArgs(
                error_code=response.error_code,
                response_code=response.response_code,
                response_page_path=response.response_page_path,
                error_caching_min_ttl=response.error_caching_min_ttl,
            )
            for response in spec.error_responses
        ]

        restrictions = aws.cloudfront.DistributionRestrictionsArgs(
            geo_restriction=aws.cloudfront.DistributionRestrictionsGeoRestrictionArgs(
                restriction_type="none",
            ),
        )

        viewer_certificate = aws.cloudfront.DistributionViewerCertificateArgs(
            acm_certificate_arn=certificate_arn,
            ssl_support_method="sni-only",
            minimum_protocol_version=MINIMUM_PROTOCOL_VERSION,
        )

        self.distribution = aws.cloudfront.Distribution(
            resource_name=name,
            enabled=True,
            is_ipv6_enabled=spec.ipv6,
            aliases=list(spec.aliases),
            origins=origins,
            default_root_object=spec.default_root_object,
            default_cache_behavior=default_cache_behavior,
            custom_error_responses=custom_error_responses or None,
            price_class=spec.price_class,
            restrictions=restrictions,
            viewer_certificate=viewer_certificate,
            tags=tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.distribution_id: pulumi.Output[str] = self.distribution.id
        self.domain_name: pulumi.Output[str] = self.distribution.domain_name
        self.hosted_zone_id: pulumi.Output[str] = self.distribution.hosted_zone_id
        self.register_outputs(
            {
                "distribution_id": self.distribution_id,
                "domain_name": self.domain_name,
                "hosted_zone_id": self.hosted_zone_id,
            }
        )
