"""Tests for component wiring, run against Pulumi's mocked engine"""

import re
from types import SimpleNamespace

import pulumi
import pulumi_aws as aws
import pytest

from components import SiteBucket, SiteCertificate, SiteDistribution, SiteRecords
from components.cdn import _forwarded_values
from config import StackConfig
from topology import APEX, WWW, build_topology

DISTRIBUTION = "aws:cloudfront/distribution:Distribution"
BUCKET = "aws:s3/bucket:Bucket"
WEBSITE = "aws:s3/bucketWebsiteConfiguration:BucketWebsiteConfiguration"
RECORD = "aws:route53/record:Record"
CERTIFICATE = "aws:acm/certificate:Certificate"
CERTIFICATE_VALIDATION = "aws:acm/certificateValidation:CertificateValidation"


def _snake(value):
    """Turn wire-format (camelCase) property names back into Python names."""
    if isinstance(value, dict):
        return {re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower(): _snake(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_snake(item) for item in value]
    return value


class SiteMocks(pulumi.runtime.Mocks):
    """Records every registered resource and fills in the outputs AWS would generate."""

    def __init__(self):
        self.registered = []

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        self.registered.append(args)
        outputs = {**args.inputs, "arn": f"arn:aws:mock:::{args.name}"}
        if args.typ == CERTIFICATE:
            outputs["domainValidationOptions"] = [
                {
                    "domainName": args.inputs.get("domainName"),
                    "resourceRecordName": "_abc.example.com.",
                    "resourceRecordType": "CNAME",
                    "resourceRecordValue": "_xyz.acm-validations.aws.",
                }
            ]
        elif args.typ == CERTIFICATE_VALIDATION:
            outputs["certificateArn"] = f"validated:{args.inputs['certificateArn']}"
        elif args.typ == DISTRIBUTION:
            outputs["domainName"] = f"{args.name}.cloudfront.net"
            outputs["hostedZoneId"] = "Z2FDTNDATAQYW2"
        elif args.typ == WEBSITE:
            outputs["websiteEndpoint"] = f"{args.name}.s3-website.eu-west-1.amazonaws.com"
        elif args.typ == RECORD:
            outputs["fqdn"] = args.inputs.get("name")
        elif args.typ == "aws:route53/zone:Zone":
            outputs["zoneId"] = "Z123"
            outputs["nameServers"] = ["ns-1.awsdns-00.com"]
        return [f"{args.name}-id", outputs]

    def call(self, args: pulumi.runtime.MockCallArgs):
        return {}

    def inputs(self, typ):
        return {args.name: _snake(args.inputs) for args in self.registered if args.typ == typ}


def declare(fn):
    """Run fn under the mocked engine and wait until every resource is registered."""

    @pulumi.runtime.test
    def run():
        fn()

    run()


@pytest.fixture
def mocks():
    mocks = SiteMocks()
    pulumi.runtime.set_mocks(mocks, preview=False)
    return mocks


def make_topology(**overrides):
    config = StackConfig(
        domain_name="example.com", environment="test", project_name="site", **overrides
    )
    return build_topology(config)


class TestForwardedValues:
    def test_apex_forwards_query_string_and_origin(self):
        values = _forwarded_values(make_topology().distributions[APEX].cache_behavior)
        assert values.query_string is True
        assert values.headers == ["Origin"]
        assert values.cookies.forward == "none"

    def test_www_forwards_nothing(self):
        values = _forwarded_values(make_topology().distributions[WWW].cache_behavior)
        assert values.query_string is False
        assert values.headers is None


class TestSiteDistribution:
    def test_cache_behaviors_are_asymmetric(self, mocks):
        topology = make_topology()

        def program():
            for key, spec in topology.distributions.items():
                SiteDistribution(
                    name=f"{key}-cdn",
                    spec=spec,
                    origin_domain_name="origin.example.com",
                    certificate_arn="arn:aws:acm:us-east-1:1:certificate/x",
                )

        declare(program)
        distributions = mocks.inputs(DISTRIBUTION)

        apex = distributions["apex-cdn"]["default_cache_behavior"]
        assert apex["forwarded_values"]["query_string"] is True
        assert apex["forwarded_values"]["headers"] == ["Origin"]
        assert apex["viewer_protocol_policy"] == "allow-all"

        www = distributions["www-cdn"]
        assert www["default_cache_behavior"]["forwarded_values"]["query_string"] is False
        assert not www["default_cache_behavior"]["forwarded_values"].get("headers")
        assert www["aliases"] == ["www.example.com"]
        assert www["custom_error_responses"][0]["response_code"] == 200
        assert www["custom_error_responses"][0]["response_page_path"] == "/404.html"
        assert www["origins"][0]["custom_origin_config"]["origin_protocol_policy"] == "http-only"
        assert www["viewer_certificate"]["ssl_support_method"] == "sni-only"


class TestSiteCertificate:
    def test_distribution_uses_validated_arn(self, mocks):
        topology = make_topology()

        def program():
            provider = aws.Provider("use1", region="us-east-1")
            certificate = SiteCertificate(
                name="cert", spec=topology.certificate, provider=provider, zone_id="Z123"
            )
            SiteDistribution(
                name="www-cdn",
                spec=topology.distributions[WWW],
                origin_domain_name="origin.example.com",
                certificate_arn=certificate.certificate_arn,
            )

        declare(program)
        viewer = mocks.inputs(DISTRIBUTION)["www-cdn"]["viewer_certificate"]
        assert viewer["acm_certificate_arn"] == "validated:arn:aws:mock:::cert"

    def test_certificate_names(self, mocks):
        topology = make_topology()

        def program():
            provider = aws.Provider("use1", region="us-east-1")
            SiteCertificate(name="cert", spec=topology.certificate, provider=provider)

        declare(program)
        certificate = mocks.inputs(CERTIFICATE)["cert"]
        assert certificate["domain_name"] == "example.com"
        assert certificate["subject_alternative_names"] == ["*.example.com"]
        assert certificate["validation_method"] == "EMAIL"

    def test_email_validation_writes_no_record(self, mocks):
        topology = make_topology()

        def program():
            provider = aws.Provider("use1", region="us-east-1")
            SiteCertificate(name="cert", spec=topology.certificate, provider=provider, zone_id="Z123")

        declare(program)
        assert mocks.inputs(RECORD) == {}
        assert not mocks.inputs(CERTIFICATE_VALIDATION)["cert-validation"].get(
            "validation_record_fqdns"
        )

    def test_dns_validation_writes_record(self, mocks):
        topology = make_topology(certificate_validation_method="DNS")

        def program():
            provider = aws.Provider("use1", region="us-east-1")
            SiteCertificate(name="cert", spec=topology.certificate, provider=provider, zone_id="Z123")

        declare(program)
        record = mocks.inputs(RECORD)["cert-validation-record"]
        assert record["zone_id"] == "Z123"
        assert record["name"] == "_abc.example.com."
        assert record["type"] == "CNAME"
        assert record["records"] == ["_xyz.acm-validations.aws."]
        validation = mocks.inputs(CERTIFICATE_VALIDATION)["cert-validation"]
        assert validation["validation_record_fqdns"] == ["_abc.example.com."]

    def test_dns_validation_needs_zone(self, mocks):
        topology = make_topology(certificate_validation_method="DNS")
        errors = []

        def program():
            provider = aws.Provider("use1", region="us-east-1")
            try:
                SiteCertificate(name="cert", spec=topology.certificate, provider=provider)
            except ValueError as exc:
                errors.append(exc)

        declare(program)
        assert len(errors) == 1


class TestSiteBucket:
    def test_website_modes(self, mocks):
        topology = make_topology()

        def program():
            for key, spec in topology.buckets.items():
                SiteBucket(name=f"{key}-bucket", spec=spec)

        declare(program)
        websites = mocks.inputs(WEBSITE)

        apex = websites["apex-bucket-website"]
        assert apex["redirect_all_requests_to"] == {"host_name": "www.example.com", "protocol": "https"}
        assert "index_document" not in apex

        www = websites["www-bucket-website"]
        assert www["index_document"] == {"suffix": "index.html"}
        assert www["error_document"] == {"key": "404.html"}
        assert "redirect_all_requests_to" not in www

    def test_buckets_are_force_destroyed(self, mocks):
        topology = make_topology()

        def program():
            for key, spec in topology.buckets.items():
                SiteBucket(name=f"{key}-bucket", spec=spec)

        declare(program)
        buckets = mocks.inputs(BUCKET)
        assert buckets["apex-bucket"]["bucket"] == "example.com"
        assert buckets["www-bucket"]["bucket"] == "www.example.com"
        assert all(bucket["force_destroy"] is True for bucket in buckets.values())

    def test_policy_waits_for_public_access_block(self, mocks, monkeypatch):
        topology = make_topology()
        captured = []
        bucket_policy = aws.s3.BucketPolicy

        def record_policy(**kwargs):
            captured.append(kwargs["opts"])
            return bucket_policy(**kwargs)

        monkeypatch.setattr(aws.s3, "BucketPolicy", record_policy)

        declare(lambda: SiteBucket(name="www-bucket", spec=topology.buckets[WWW]))

        (opts,) = captured
        assert len(opts.depends_on) == 1
        assert isinstance(opts.depends_on[0], aws.s3.BucketPublicAccessBlock)


class TestSiteRecords:
    def test_alias_records_target_distributions(self, mocks):
        topology = make_topology(enable_ipv6=True)

        def program():
            targets = {
                key: SimpleNamespace(
                    domain_name=pulumi.Output.from_input(f"{key}.cloudfront.net"),
                    hosted_zone_id=pulumi.Output.from_input("Z2FDTNDATAQYW2"),
                )
                for key in topology.distributions
            }
            SiteRecords(
                name="records", zone_id="Z123", records=list(topology.records), targets=targets
            )

        declare(program)
        records = mocks.inputs(RECORD)
        assert sorted(records) == [
            "records-example-com-a",
            "records-example-com-aaaa",
            "records-www-example-com-a",
            "records-www-example-com-aaaa",
        ]
        (alias,) = records["records-example-com-a"]["aliases"]
        assert alias == {
            "name": "apex.cloudfront.net",
            "zone_id": "Z2FDTNDATAQYW2",
            "evaluate_target_health": False,
        }
        assert records["records-www-example-com-aaaa"]["aliases"][0]["name"] == "www.cloudfront.net"
        assert all(record["zone_id"] == "Z123" for record in records.values())
