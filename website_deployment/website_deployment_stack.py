from typing import List, Optional
from aws_cdk import Stack
from constructs import Construct
from .storage.storage import StorageConstruct
from .distribution.response_headers import ResponseHeadersConstruct
from .distribution.distribution import DistributionConstruct
from .deployment.deployment import DeploymentConstruct


class WebsiteDeploymentStack(Stack):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        asset_path: str = "website",
        removal_policy: str = "destroy",
        domain_name_export: str = "cloudFrontDomainName",
        bucket_name: Optional[str] = None,
        domain_names: Optional[List[str]] = None,
        certificate_arn: Optional[str] = None,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Create private hosting bucket with OAI read access
        self.storage = StorageConstruct(
            self, "Storage",
            bucket_name=bucket_name,
            removal_policy=removal_policy
        )

        # Create security headers policy
        self.response_headers = ResponseHeadersConstruct(
            self, "ResponseHeaders"
        )

        # Create CloudFront distribution in front of the bucket
        self.distribution = DistributionConstruct(
            self, "Distribution",
            storage_construct=self.storage,
            response_headers_construct=self.response_headers,
            domain_names=domain_names,
            certificate_arn=certificate_arn
        )

        # Upload the site and invalidate the distribution cache
        self.deployment = DeploymentConstruct(
            self, "Deployment",
            asset_path=asset_path,
            storage_construct=self.storage,
            distribution_construct=self.distribution,
            domain_name_export=domain_name_export
        )
