import copy

import pytest

from cloudfront_spa.builders.template_builder import (
    CACHE_POLICY_ID,
    CLOUDFRONT_HOSTED_ZONE_ID,
    augment_template,
    build_resources,
)
from cloudfront_spa.configs.error_handler import TemplateCollisionError
from cloudfront_spa.configs.plugin_cfg import load_spa_cfg

RESOURCE_NAMES = {"WebRootBucket", "WebRootBucketOAI", "WebRootPolicy", "Webserver", "DnsRecord", "DnsRecord6"}
OUTPUT_NAMES = {"WebRootBucketName", "WebsiteDistributionId"}


@pytest.fixture
def cfg(site_section):
    return load_spa_cfg({"CloudfrontReactPlugin": site_section})


def _template():
    return {"Resources": {}, "Outputs": {}}


@pytest.mark.parametrize("domain,zone", [("example.com", "Z1"), ("www.other.org", "Z0987654321ABC")])
def test_fixed_names_regardless_of_input(site_section, domain, zone):
    site_section.update(domainName=domain, hostedZoneId=zone)
    template = _template()
    augment_template(load_spa_cfg({"CloudfrontReactPlugin": site_section}), template, service_name="svc", stage="prod")

    assert set(template["Resources"]) == RESOURCE_NAMES
    assert set(template["Outputs"]) == OUTPUT_NAMES
    assert template["Outputs"]["WebRootBucketName"] == {"Value": {"Ref": "WebRootBucket"}}
    assert template["Outputs"]["WebsiteDistributionId"] == {"Value": {"Ref": "Webserver"}}


def test_bucket_is_private(cfg):
    bucket = build_resources(cfg, service_name="site", stage="dev")["WebRootBucket"]
    assert bucket["Type"] == "AWS::S3::Bucket"
    assert all(bucket["Properties"]["PublicAccessBlockConfiguration"].values())


def test_policy_grants_only_the_origin_access_identity(cfg):
    policy = build_resources(cfg, service_name="site", stage="dev")["WebRootPolicy"]["Properties"]
    statement, = policy["PolicyDocument"]["Statement"]

    assert policy["Bucket"] == {"Ref": "WebRootBucket"}
    assert statement["Action"] == ["s3:GetObject"]
    assert statement["Resource"] == {"Fn::Sub": "${WebRootBucket.Arn}/*"}
    assert statement["Principal"] == {
        "CanonicalUser": {"Fn::GetAtt": ["WebRootBucketOAI", "S3CanonicalUserId"]}
    }


def test_origin_access_identity_comment(cfg):
    oai = build_resources(cfg, service_name="site", stage="dev")["WebRootBucketOAI"]
    assert oai["Properties"]["CloudFrontOriginAccessIdentityConfig"]["Comment"] == "site WebRootBucket (dev)"


def test_distribution(cfg):
    config = build_resources(cfg, service_name="site", stage="dev")["Webserver"]["Properties"]["DistributionConfig"]

    assert config["Aliases"] == ["example.com"]
    assert sorted(r["ErrorCode"] for r in config["CustomErrorResponses"]) == [403, 404]
    for response in config["CustomErrorResponses"]:
        assert response["ResponseCode"] == 200
        assert response["ResponsePagePath"] == "/index.html"
        assert response["ErrorCachingMinTTL"] == 86400
    assert config["DefaultCacheBehavior"] == {
        "TargetOriginId": "WebRoot",
        "ViewerProtocolPolicy": "redirect-to-https",
        "CachePolicyId": CACHE_POLICY_ID,
    }
    origin, = config["Origins"]
    assert origin["Id"] == "WebRoot"
    assert origin["DomainName"] == {"Fn::GetAtt": ["WebRootBucket", "DomainName"]}
    assert origin["S3OriginConfig"]["OriginAccessIdentity"] == {
        "Fn::Sub": "origin-access-identity/cloudfront/${WebRootBucketOAI}"
    }
    assert config["ViewerCertificate"]["AcmCertificateArn"] == cfg.certificate_arn
    assert config["ViewerCertificate"]["MinimumProtocolVersion"] == "TLSv1.2_2021"
    assert config["ViewerCertificate"]["SslSupportMethod"] == "sni-only"


def test_alias_records(cfg):
    resources = build_resources(cfg, service_name="site", stage="dev")
    types = {}
    for name in ("DnsRecord", "DnsRecord6"):
        props = resources[name]["Properties"]
        assert props["HostedZoneId"] == "Z1"
        assert props["Name"] == "example.com"
        assert props["AliasTarget"] == {
            "DNSName": {"Fn::GetAtt": ["Webserver", "DomainName"]},
            "HostedZoneId": CLOUDFRONT_HOSTED_ZONE_ID,
        }
        types[name] = props["Type"]
    assert types == {"DnsRecord": "A", "DnsRecord6": "AAAA"}


def test_existing_template_entries_are_kept(cfg):
    template = {
        "Resources": {"ApiFunction": {"Type": "AWS::Lambda::Function"}},
        "Outputs": {"ApiUrl": {"Value": "https://api.example.com"}},
    }
    augment_template(cfg, template, service_name="site", stage="dev")

    assert "ApiFunction" in template["Resources"]
    assert "ApiUrl" in template["Outputs"]
    assert len(template["Resources"]) == 7


def test_missing_sections_are_created(cfg):
    template = {"AWSTemplateFormatVersion": "2010-09-09"}
    augment_template(cfg, template, service_name="site", stage="dev")
    assert set(template["Resources"]) == RESOURCE_NAMES


@pytest.mark.parametrize("section,name", [("Resources", "Webserver"), ("Outputs", "WebRootBucketName")])
def test_collision_is_rejected(cfg, section, name):
    template = _template()
    template[section][name] = {"Type": "Custom::Mine"}
    before = copy.deepcopy(template)

    with pytest.raises(TemplateCollisionError, match=name):
        augment_template(cfg, template, service_name="site", stage="dev")
    assert template == before
