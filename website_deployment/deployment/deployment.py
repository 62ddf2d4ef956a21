"""
Deployment construct uploading the built website to the hosting bucket.
"""

import logging
import os
from constructs import Construct
from aws_cdk import (
    aws_s3_deployment as s3_deployment,
    Stack,
    CfnOutput
)
from ..distribution.distribution import NOT_FOUND_PAGE_PATH

logger = logging.getLogger(__name__)


class DeploymentConstruct(Construct):
    """
    Uploads the website files and invalidates the CloudFront cache afterwards.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        asset_path: str,
        storage_construct=None,
        distribution_construct=None,
        domain_name_export: str = "cloudFrontDomainName",
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        if storage_construct is None or distribution_construct is None:
            raise ValueError("Storage and distribution constructs are required for the website deployment")

        # Store references to other constructs
        self.storage = storage_construct
        self.distribution = distribution_construct

        # Instance variables
        self.bucket_deployment = None

        # Configuration
        self._stack_name = Stack.of(self).stack_name
        self._asset_path = asset_path
        self._domain_name_export = domain_name_export

        self.validate_asset_path()
        self.deploy_website()
        self.create_outputs()

    def validate_asset_path(self):
        """Check the asset directory before it gets staged."""

        if not os.path.isdir(self._asset_path):
            raise FileNotFoundError(f"Website asset directory not found: {self._asset_path}")

        not_found_page = NOT_FOUND_PAGE_PATH.lstrip("/")
        if not os.path.isfile(os.path.join(self._asset_path, not_found_page)):
            logger.warning(
                f"No {not_found_page} in {self._asset_path}, missing pages will be answered with an empty error page"
            )

    def deploy_website(self):
        """Deploy the built files to the hosting bucket."""

        logger.info(f"Deploying website assets from {self._asset_path}")

        # Objects missing from the source directory are left in the bucket
        self.bucket_deployment = s3_deployment.BucketDeployment(
            self, "S3HostingBucketDeployment",
            sources=[s3_deployment.Source.asset(self._asset_path)],
            prune=False,
            destination_bucket=self.storage.hosting_bucket,
            distribution=self.distribution.distribution,
            distribution_paths=["/*"],
        )

    def create_outputs(self):
        """Create CloudFormation outputs."""

        domain_name = self.distribution.distribution.distribution_domain_name

        # CloudFront Domain Name
        CfnOutput(
            self, "CloudFrontDomainName",
            value=domain_name,
            description="Domain name of the CloudFront distribution",
            export_name=self._domain_name_export
        )

        # Website URL
        CfnOutput(
            self, "WebsiteUrl",
            value=f"https://{domain_name}",
            description="Website URL (CloudFront)",
            export_name=f"{self._stack_name}-WebsiteUrl"
        )
