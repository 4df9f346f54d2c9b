"""
S3 bucket serving a static website (or redirecting every request).

This component creates one bucket from a ``BucketSpec``: the bucket itself
(with ``force_destroy`` so it can be deleted while it still holds objects),
optional versioning, CORS rules, the website configuration and a public-read
bucket policy rendered from a template. CloudFront reaches the bucket through
its S3 website endpoint, so Block Public Access is switched off and the policy
is applied only after that. ``website_endpoint`` is an ``Output[str]`` so the
distribution component can use it as its origin.
"""

import json
from typing import TYPE_CHECKING

import pulumi
import pulumi_aws as aws

if TYPE_CHECKING:
    from topology import BucketSpec

ID: str = "staticsite:aws:SiteBucket"

# Website buckets are read through the public website endpoint. Used by tests
# and callers to assert on the public-access posture.
S3_WEBSITE_PUBLIC_ACCESS: dict[str, bool] = {
    "block_public_acls": False,
    "block_public_policy": False,
    "ignore_public_acls": False,
    "restrict_public_buckets": False,
}


class SiteBucket(pulumi.ComponentResource):
    """
    Website bucket with versioning, CORS, website mode and bucket policy.

    Resources: Bucket, optional BucketVersioning, optional
    BucketCorsConfiguration, BucketWebsiteConfiguration,
    BucketPublicAccessBlock, BucketPolicy.
    """

    def __init__(
        self,
        name: str,
        spec: "BucketSpec",
        tags: dict[str, str] | None = None,
    ):
        """
        Create the bucket and its configuration resources.

        Args:
            name: Pulumi resource name prefix for the bucket and its children.
            spec: Declared bucket (name, policy, website mode, flags).
            tags: Tags applied to the bucket.

        Outputs (set on self, registered for the component):
            bucket_name: The bucket name.
            bucket_arn: The bucket ARN.
            website_endpoint: S3 website endpoint, used as CloudFront origin.
        """
        super().__init__(ID, name)

        child_opts = pulumi.ResourceOptions(parent=self)

        if spec.force_destroy:
            pulumi.log.info(
                f"bucket {spec.name} is declared with force_destroy; destroying the stack deletes its objects"
            )

        self.bucket = aws.s3.Bucket(
            resource_name=name,
            bucket=spec.name,
            force_destroy=spec.force_destroy,
            tags=tags,
            opts=child_opts,
        )

        if spec.versioning:
            aws.s3.BucketVersioning(
                resource_name=f"{name}-versioning",
                bucket=self.bucket.id,
                versioning_configuration=aws.s3.BucketVersioningVersioningConfigurationArgs(
                    status="Enabled",
                ),
                opts=child_opts,
            )

        if spec.cors_rules:
            aws.s3.BucketCorsConfiguration(
                resource_name=f"{name}-cors",
                bucket=self.bucket.id,
                cors_rules=[
                    aws.s3.BucketCorsConfigurationCorsRuleArgs(
                        allowed_headers=list(rule.allowed_headers),
                        allowed_methods=list(rule.allowed_methods),
                        allowed_origins=list(rule.allowed_origins),
                        max_age_seconds=rule.max_age_seconds,
                    )
                    for rule in spec.cors_rules
                ],
                opts=child_opts,
            )

        website = spec.website
        if website.is_redirect:
            website_args = {
                "redirect_all_requests_to": aws.s3.BucketWebsiteConfigurationRedirectAllRequestsToArgs(
                    host_name=website.redirect_host,
                    protocol=website.redirect_protocol,
                ),
            }
        else:
            website_args = {
                "index_document": aws.s3.BucketWebsiteConfigurationIndexDocumentArgs(
                    suffix=website.index_document,
                ),
            }
            if website.error_document:
                website_args["error_document"] = aws.s3.BucketWebsiteConfigurationErrorDocumentArgs(
                    key=website.error_document,
                )
        self.website = aws.s3.BucketWebsiteConfiguration(
            resource_name=f"{name}-website",
            bucket=self.bucket.id,
            opts=child_opts,
            **website_args,
        )

        public_access = aws.s3.BucketPublicAccessBlock(
            resource_name=f"{name}-public-access",
            bucket=self.bucket.id,
            opts=child_opts,
            **S3_WEBSITE_PUBLIC_ACCESS,
        )

        # S3 rejects a public policy while Block Public Access is still on.
        aws.s3.BucketPolicy(
            resource_name=f"{name}-policy",
            bucket=self.bucket.id,
            policy=json.dumps(spec.policy),
            opts=pulumi.ResourceOptions(parent=self, depends_on=[public_access]),
        )

        self.bucket_name: pulumi.Output[str] = self.bucket.bucket
        self.bucket_arn: pulumi.Output[str] = self.bucket.arn
        self.website_endpoint: pulumi.Output[str] = self.website.website_endpoint
        self.register_outputs(
            {
                "bucket_name": self.bucket_name,
                "bucket_arn": self.bucket_arn,
                "website_endpoint": self.website_endpoint,
            }
        )
