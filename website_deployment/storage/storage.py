"""
AWS CDK Construct for the private website hosting bucket.
"""

import logging
from typing import Optional
from constructs import Construct
from aws_cdk import (
    aws_s3 as s3,
    aws_cloudfront as cloudfront,
    aws_iam as iam,
    RemovalPolicy,
    Stack,
    CfnOutput
)

logger = logging.getLogger(__name__)

REMOVAL_POLICIES = {
    "destroy": RemovalPolicy.DESTROY,
    "retain": RemovalPolicy.RETAIN,
}


def resolve_removal_policy(name: str) -> RemovalPolicy:
    """Map a configured removal policy name to the CDK enum."""
    try:
        return REMOVAL_POLICIES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown removal policy '{name}', expected one of: {', '.join(REMOVAL_POLICIES)}"
        ) from None


class StorageConstruct(Construct):
    """
    Storage construct for the website files.
    Provides a private bucket readable only through a CloudFront origin access identity.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        bucket_name: Optional[str] = None,
        removal_policy: str = "destroy",
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Instance variables
        self.hosting_bucket = None
        self.origin_access_identity = None
        self.read_access_statement = None

        # Configuration
        self._stack_name = Stack.of(self).stack_name
        self._bucket_name = bucket_name
        self._removal_policy = resolve_removal_policy(removal_policy)

        # Create the storage infrastructure
        self.create_hosting_bucket()
        self.create_origin_access_identity()
        self.grant_origin_read_access()
        self.create_outputs()

    def create_hosting_bucket(self):
        """Create the private S3 bucket holding the website files."""

        destroy = self._removal_policy == RemovalPolicy.DESTROY
        if destroy:
            logger.warning(
                f"Hosting bucket for {self._stack_name} is destroyed with the stack, including every object in it"
            )

        # The static website feature of S3 stays off: CloudFront is the only serving path
        self.hosting_bucket = s3.Bucket(
            self, "S3HostingBucket",
            bucket_name=self._bucket_name,
            public_read_access=False,
            versioned=False,
            removal_policy=self._removal_policy,
            auto_delete_objects=destroy,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            access_control=s3.BucketAccessControl.PRIVATE,
            object_ownership=s3.ObjectOwnership.BUCKET_OWNER_ENFORCED,
            encryption=s3.BucketEncryption.S3_MANAGED,
        )

    def create_origin_access_identity(self):
        """Create the CloudFront origin access identity (OAI) user."""

        self.origin_access_identity = cloudfront.OriginAccessIdentity(
            self, "CloudFrontOriginAccessIdentity",
            comment=f"CloudFront access to the {self._stack_name} hosting bucket"
        )

    def grant_origin_read_access(self):
        """Grant the OAI user read access to the bucket objects through the bucket policy."""

        self.read_access_statement = iam.PolicyStatement(
            effect=iam.Effect.ALLOW,
            actions=["s3:GetObject"],
            resources=[self.hosting_bucket.arn_for_objects("*")],
            principals=[
                iam.CanonicalUserPrincipal(
                    self.origin_access_identity.cloud_front_origin_access_identity_s3_canonical_user_id
                )
            ],
        )

        self.hosting_bucket.add_to_resource_policy(self.read_access_statement)

    def create_outputs(self):
        """Create CloudFormation outputs."""

        CfnOutput(
            self, "HostingBucketName",
            value=self.hosting_bucket.bucket_name,
            description="S3 bucket name holding the website files",
            export_name=f"{self._stack_name}-HostingBucketName"
        )
