"""
CloudFront distribution construct fronting the private hosting bucket.
"""

from typing import List, Optional
from constructs import Construct
from aws_cdk import (
    aws_certificatemanager as acm,
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
    Stack,
    CfnOutput
)

NOT_FOUND_PAGE_PATH = "/404.html"


class DistributionConstruct(Construct):
    """
    CloudFront distribution serving the website over HTTPS only.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        storage_construct=None,
        response_headers_construct=None,
        domain_names: Optional[List[str]] = None,
        certificate_arn: Optional[str] = None,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        if storage_construct is None or response_headers_construct is None:
            raise ValueError("Storage and response headers constructs are required for the distribution")

        if bool(domain_names) != bool(certificate_arn):
            raise ValueError("Custom domain names and a certificate ARN must be configured together")

        # Store references to other constructs
        self.storage = storage_construct
        self.response_headers = response_headers_construct

        # Instance variables
        self.distribution = None

        # Configuration
        self._stack_name = Stack.of(self).stack_name
        self._domain_names = domain_names or []
        self._certificate_arn = certificate_arn

        self.create_distribution()
        self.create_outputs()

    def create_distribution(self):
        """Bind the bucket, OAI user and response headers policy to the distribution."""

        # Without a custom certificate CloudFront serves its default certificate and
        # the minimum protocol version has no effect
        certificate = None
        if self._certificate_arn:
            certificate = acm.Certificate.from_certificate_arn(
                self, "DistributionCertificate",
                certificate_arn=self._certificate_arn
            )

        # The bucket answers 403 for missing keys since listing is denied to the OAI,
        # so 403 is what gets mapped to the not found page
        self.distribution = cloudfront.Distribution(
            self, "CloudFrontDistribution",
            default_root_object="index.html",
            minimum_protocol_version=cloudfront.SecurityPolicyProtocol.TLS_V1_2_2021,
            default_behavior=cloudfront.BehaviorOptions(
                origin=origins.S3BucketOrigin.with_origin_access_identity(
                    self.storage.hosting_bucket,
                    origin_access_identity=self.storage.origin_access_identity
                ),
                compress=True,
                allowed_methods=cloudfront.AllowedMethods.ALLOW_GET_HEAD_OPTIONS,
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                response_headers_policy=self.response_headers.response_headers_policy,
            ),
            error_responses=[
                cloudfront.ErrorResponse(
                    http_status=403,
                    response_http_status=404,
                    response_page_path=NOT_FOUND_PAGE_PATH
                )
            ],
            domain_names=self._domain_names or None,
            certificate=certificate,
            comment=f"CloudFront distribution for {self._stack_name} website"
        )

    def create_outputs(self):
        """Create CloudFormation outputs."""

        CfnOutput(
            self, "CloudFrontDistributionId",
            value=self.distribution.distribution_id,
            description="CloudFront Distribution ID",
            export_name=f"{self._stack_name}-CloudFrontDistributionId"
        )
