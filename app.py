#!/usr/bin/env python3
import logging
import os

import aws_cdk as cdk

from constants import (
    STACK_NAME,
    WEBSITE_ASSET_PATH,
    REMOVAL_POLICY,
    DOMAIN_NAME_EXPORT,
    DOMAIN_NAMES,
    CERTIFICATE_ARN,
    LOG_LEVEL,
)
from website_deployment.website_deployment_stack import WebsiteDeploymentStack

logging.basicConfig(level=getattr(logging, LOG_LEVEL))

app = cdk.App()
WebsiteDeploymentStack(
    app, STACK_NAME,
    asset_path=WEBSITE_ASSET_PATH,
    removal_policy=REMOVAL_POLICY,
    domain_name_export=DOMAIN_NAME_EXPORT,
    domain_names=DOMAIN_NAMES,
    certificate_arn=CERTIFICATE_ARN,
    env=cdk.Environment(
        account=os.environ.get("CDK_DEFAULT_ACCOUNT"),
        region=os.environ.get("CDK_DEFAULT_REGION"),
    ),
)

app.synth()
