"""
CloudFormation fragment builder for the CloudFront SPA plugin.

This module renders the static-site hosting resources (private S3 bucket,
origin access identity, bucket policy, CloudFront distribution and Route 53
alias records) as plain CloudFormation dictionaries and merges them into a
compiled template. The logical names and output names are referenced by the
sync, invalidate and remove stages and must not change.
"""

from __future__ import annotations
from typing import Any, Dict

from cloudfront_spa.configs.error_handler import ErrorHandler
from cloudfront_spa.configs.plugin_cfg import SpaCfg

BUCKET = "WebRootBucket"
ORIGIN_ACCESS_IDENTITY = "WebRootBucketOAI"
BUCKET_POLICY = "WebRootPolicy"
DISTRIBUTION = "Webserver"
DNS_RECORD = "DnsRecord"
DNS_RECORD_V6 = "DnsRecord6"

BUCKET_NAME_OUTPUT = "WebRootBucketName"
DISTRIBUTION_ID_OUTPUT = "WebsiteDistributionId"

ORIGIN_ID = "WebRoot"

# Managed-CachingOptimized cache policy.
CACHE_POLICY_ID = "b2884449-e4de-46a7-ac36-70bc7f1ddd6d"
# Hosted zone shared by every CloudFront distribution, used for alias targets.
CLOUDFRONT_HOSTED_ZONE_ID = "Z2FDTNDATAQYW2"

MINIMUM_PROTOCOL_VERSION = "TLSv1.2_2021"
ERROR_CACHING_MIN_TTL = 86400


def _ref(logical_id: str) -> Dict[str, Any]:
    return {"Ref": logical_id}


def _get_att(logical_id: str, attr: str) -> Dict[str, Any]:
    return {"Fn::GetAtt": [logical_id, attr]}


def _sub(template: str) -> Dict[str, Any]:
    return {"Fn::Sub": template}


def _spa_error_response(code: int) -> Dict[str, Any]:
    return {
        "ErrorCachingMinTTL": ERROR_CACHING_MIN_TTL,
        "ErrorCode": code,
        "ResponseCode": 200,
        "ResponsePagePath": "/index.html",
    }


def _alias_record(cfg: SpaCfg, record_type: str) -> Dict[str, Any]:
    return {
        "Type": "AWS::Route53::RecordSet",
        "Properties": {
            "AliasTarget": {
                "DNSName": _get_att(DISTRIBUTION, "DomainName"),
                "HostedZoneId": CLOUDFRONT_HOSTED_ZONE_ID,
            },
            "HostedZoneId": cfg.hosted_zone_id,
            "Name": cfg.domain_name,
            "Type": record_type,
        },
    }


def build_resources(
        cfg: SpaCfg,
        *,
        service_name: str,
        stage: str
    ) -> Dict[str, Dict[str, Any]]:
    """
    Build the hosting resources keyed by logical name.

    Args:
        cfg: Plugin configuration
        service_name: Service name, used in the OAI comment
        stage: Deployment stage, used in the OAI comment

    Returns:
        Mapping of logical name to CloudFormation resource
    """
    return {
        BUCKET: {
            "Type": "AWS::S3::Bucket",
            "Properties": {
                "PublicAccessBlockConfiguration": {
                    "BlockPublicAcls": True,
                    "BlockPublicPolicy": True,
                    "IgnorePublicAcls": True,
                    "RestrictPublicBuckets": True,
                },
            },
        },
        ORIGIN_ACCESS_IDENTITY: {
            "Type": "AWS::CloudFront::CloudFrontOriginAccessIdentity",
            "Properties": {
                "CloudFrontOriginAccessIdentityConfig": {
                    "Comment": f"{service_name} {BUCKET} ({stage})",
                },
            },
        },
        BUCKET_POLICY: {
            "Type": "AWS::S3::BucketPolicy",
            "Properties": {
                "Bucket": _ref(BUCKET),
                "PolicyDocument": {
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Action": ["s3:GetObject"],
                            "Effect": "Allow",
                            "Principal": {
                                "CanonicalUser": _get_att(ORIGIN_ACCESS_IDENTITY, "S3CanonicalUserId"),
                            },
                            "Resource": _sub(f"${{{BUCKET}.Arn}}/*"),
                        }
                    ],
                },
            },
        },
        DISTRIBUTION: {
            "Type": "AWS::CloudFront::Distribution",
            "Properties": {
                "DistributionConfig": {
                    "Aliases": [cfg.domain_name],
                    "CustomErrorResponses": [
                        _spa_error_response(404),
                        _spa_error_response(403),
                    ],
                    "DefaultCacheBehavior": {
                        "TargetOriginId": ORIGIN_ID,
                        "ViewerProtocolPolicy": "redirect-to-https",
                        "CachePolicyId": CACHE_POLICY_ID,
                    },
                    "DefaultRootObject": "index.html",
                    "Enabled": True,
                    "HttpVersion": "http2",
                    "Origins": [
                        {
                            "DomainName": _get_att(BUCKET, "DomainName"),
                            "Id": ORIGIN_ID,
                            "S3OriginConfig": {
                                "OriginAccessIdentity": _sub(
                                    f"origin-access-identity/cloudfront/${{{ORIGIN_ACCESS_IDENTITY}}}"
                                ),
                            },
                        }
                    ],
                    "PriceClass": "PriceClass_100",
                    "ViewerCertificate": {
                        "AcmCertificateArn": cfg.certificate_arn,
                        "MinimumProtocolVersion": MINIMUM_PROTOCOL_VERSION,
                        "SslSupportMethod": "sni-only",
                    },
                },
            },
        },
        DNS_RECORD: _alias_record(cfg, "A"),
        DNS_RECORD_V6: _alias_record(cfg, "AAAA"),
    }


def build_outputs() -> Dict[str, Dict[str, Any]]:
    """Outputs read back by the sync, invalidate and remove stages."""
    return {
        BUCKET_NAME_OUTPUT: {"Value": _ref(BUCKET)},
        DISTRIBUTION_ID_OUTPUT: {"Value": _ref(DISTRIBUTION)},
    }


def augment_template(
        cfg: SpaCfg,
        template: Dict[str, Any],
        *,
        service_name: str,
        stage: str
    ) -> None:
    """
    Merge the hosting resources and outputs into a template in place.

    Args:
        cfg: Plugin configuration
        template: Compiled CloudFormation template to mutate
        service_name: Service name
        stage: Deployment stage

    Raises:
        TemplateCollisionError: If a generated name is already defined
    """
    resources = build_resources(cfg, service_name=service_name, stage=stage)
    outputs = build_outputs()

    template_resources = template.setdefault("Resources", {})
    template_outputs = template.setdefault("Outputs", {})
    ErrorHandler.validate_no_collisions(template_resources, resources, "Resources")
    ErrorHandler.validate_no_collisions(template_outputs, outputs, "Outputs")

    template_resources.update(resources)
    template_outputs.update(outputs)
