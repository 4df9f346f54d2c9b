"""
Route53 hosted zone and the records that point the site names at CloudFront.

``SiteZone`` creates the authoritative zone for the apex domain. After the
first deployment the domain must be delegated at the registrar to the zone's
name servers (exposed as ``name_servers``); nothing here can verify that.

``SiteRecords`` declares the zone's records. Alias records point at a
distribution's generated domain name and CloudFront hosted zone id; taking
both as ``Output[str]`` from the distribution component makes the engine
create the distribution before the record. Literal CNAME records
carry their values and TTL.
"""

from typing import TYPE_CHECKING, Protocol

import pulumi
import pulumi_aws as aws

from components._helpers import slug

if TYPE_CHECKING:
    from topology import RecordSpec, ZoneSpec

ZONE_ID = "staticsite:aws:SiteZone"
RECORDS_ID = "staticsite:aws:SiteRecords"


class AliasTarget(Protocol):
    """Anything with a generated DNS name and hosted zone, e.g. SiteDistribution."""

    domain_name: pulumi.Output[str]
    hosted_zone_id: pulumi.Output[str]


class SiteZone(pulumi.ComponentResource):
    """
    Route53 public hosted zone for the apex domain.

    Resources: Zone.
    """

    def __init__(
        self,
        name: str,
        spec: "ZoneSpec",
        tags: dict[str, str] | None = None,
    ):
        """
        Create the hosted zone.

        Outputs (set on self, registered for the component):
            zone_id: Hosted zone id.
            name_servers: Name servers Route53 assigned; delegate the domain
                to these at the registrar.
        """
        super().__init__(ZONE_ID, name)

        self.zone = aws.route53.Zone(
            resource_name=name,
            name=spec.name,
            comment=f"Static site zone for {spec.name}",
            tags=tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.zone_id: pulumi.Output[str] = self.zone.zone_id
        self.name_servers: pulumi.Output[list[str]] = self.zone.name_servers
        self.register_outputs(
            {
                "zone_id": self.zone_id,
                "name_servers": self.name_servers,
            }
        )


class SiteRecords(pulumi.ComponentResource):
    """
    Records of one hosted zone: aliases to distributions and literal records.

    Resources: one Record per RecordSpec.
    """

    def __init__(
        self,
        name: str,
        zone_id: pulumi.Input[str],
        records: list["RecordSpec"],
        targets: dict[str, AliasTarget],
    ):
        """
        Create the records.

        Args:
            name: Pulumi resource name prefix.
            zone_id: Hosted zone the records belong to.
            records: Declared records.
            targets: Alias targets by distribution key.

        Raises:
            KeyError: If an alias record names a target not in ``targets``.

        Outputs (set on self, registered for the component):
            fqdns: Fully qualified names of the created records.
        """
        super().__init__(RECORDS_ID, name)

        child_opts = pulumi.ResourceOptions(parent=self)

        self.records: list[aws.route53.Record] = []
        for spec in records:
            resource_name = f"{name}-{slug(spec.name)}-{spec.type.lower()}"
            if spec.is_alias:
                target = targets[spec.alias_target]
                record = aws.route53.Record(
                    resource_name=resource_name,
                    zone_id=zone_id,
                    name=spec.name,
                    type=spec.type,
                    aliases=[
                        aws.route53.RecordAliasArgs(
                            name=target.domain_name,
                            zone_id=target.hosted_zone_id,
                            evaluate_target_health=False,
                        )
                    ],
                    opts=child_opts,
                )
            else:
                record = aws.route53.Record(
                    resource_name=resource_name,
                    zone_id=zone_id,
                    name=spec.name,
                    type=spec.type,
                    ttl=spec.ttl or 300,
                    records=list(spec.values),
                    opts=child_opts,
                )
            self.records.append(record)

        self.fqdns: pulumi.Output[list[str]] = pulumi.Output.all(
            *[record.fqdn for record in self.records]
        )
        self.register_outputs({"fqdns": self.fqdns})
