"""
ACM certificate for the site, issued in us-east-1 for CloudFront.

The certificate covers the apex domain and a single-label wildcard, so one
certificate serves both the apex and the www distribution. Distributions must
reference ``certificate_arn`` (the ARN emitted by ``CertificateValidation``),
never the raw certificate ARN, so the engine does not create them before the
certificate is validated.

EMAIL validation waits for someone to approve the mail ACM sends to the
domain contacts; ``pulumi up`` blocks on it. DNS validation writes the
validation CNAME into the hosted zone and needs no manual step.
"""

from typing import TYPE_CHECKING

import pulumi
import pulumi_aws as aws

if TYPE_CHECKING:
    from topology import CertificateSpec

ID: str = "staticsite:aws:SiteCertificate"

# CloudFront only accepts ACM certificates from this region.
CLOUDFRONT_CERTIFICATE_REGION = "us-east-1"


class SiteCertificate(pulumi.ComponentResource):
    """
    ACM certificate plus the validation gate distributions depend on.

    Resources: Certificate, optional Route53 validation Record (DNS method),
    CertificateValidation.
    """

    def __init__(
        self,
        name: str,
        spec: "CertificateSpec",
        provider: aws.Provider,
        zone_id: pulumi.Input[str] | None = None,
        tags: dict[str, str] | None = None,
    ):
        """
        Request the certificate and declare its validation.

        Args:
            name: Pulumi resource name prefix.
            spec: Declared certificate (names, validation method).
            provider: AWS provider pinned to us-east-1.
            zone_id: Hosted zone for the validation record; required for DNS
                validation, ignored for EMAIL.
            tags: Tags applied to the certificate.

        Outputs (set on self, registered for the component):
            certificate_arn: ARN of the validated certificate.
        """
        super().__init__(ID, name)

        child_opts = pulumi.ResourceOptions(parent=self, provider=provider)

        self.certificate = aws.acm.Certificate(
            resource_name=name,
            domain_name=spec.domain_name,
            subject_alternative_names=list(spec.subject_alternative_names),
            validation_method=spec.validation_method,
            tags=tags,
            opts=child_opts,
        )

        validation_fqdns = None
        if spec.validation_method == "DNS":
            if zone_id is None:
                raise ValueError("DNS certificate validation needs a hosted zone id")
            # The apex and its wildcard share one validation record.
            option = self.certificate.domain_validation_options[0]
            record = aws.route53.Record(
                resource_name=f"{name}-validation-record",
                zone_id=zone_id,
                name=option.resource_record_name,
                type=option.resource_record_type,
                records=[option.resource_record_value],
                ttl=60,
                allow_overwrite=True,
                opts=pulumi.ResourceOptions(parent=self),
            )
            validation_fqdns = [record.fqdn]
        else:
            pulumi.log.warn(
                f"certificate for {', '.join(spec.names)} uses EMAIL validation; "
                "approve the ACM mail sent to the domain contacts or the update will wait",
                resource=self.certificate,
            )

        self.validation = aws.acm.CertificateValidation(
            resource_name=f"{name}-validation",
            certificate_arn=self.certificate.arn,
            validation_record_fqdns=validation_fqdns,
            opts=child_opts,
        )

        self.certificate_arn: pulumi.Output[str] = self.validation.certificate_arn
        self.register_outputs({"certificate_arn": self.certificate_arn})
