# Configuration constants for the website deployment stack
# These values are determined by environment variables (set by the CI pipeline)
# or fall back to dev defaults for local development

import os

# Stack name for CDK deployment
# Set STACK_NAME environment variable in the pipeline:
#   - Dev: "WebsiteDeploymentStack"
#   - Production: "WebsiteDeploymentStack-Prod"
STACK_NAME = os.environ.get("STACK_NAME", "WebsiteDeploymentStack")

# Directory holding the pre-built site files uploaded by the bucket deployment
WEBSITE_ASSET_PATH = os.environ.get("WEBSITE_ASSET_PATH", "website")

# What happens to the hosting bucket when the stack is deleted:
#   - "destroy": bucket and every object in it are deleted (ephemeral/test stacks)
#   - "retain": bucket and objects are left behind (production stacks)
REMOVAL_POLICY = os.environ.get("REMOVAL_POLICY", "destroy").lower()

# CloudFormation export name of the distribution domain name output
DOMAIN_NAME_EXPORT = os.environ.get("DOMAIN_NAME_EXPORT", "cloudFrontDomainName")

# Optional custom domain for the distribution, comma-separated (e.g. "example.com,www.example.com")
# Requires CERTIFICATE_ARN; the minimum TLS version only applies with a custom certificate
DOMAIN_NAMES = [name.strip() for name in os.environ.get("DOMAIN_NAMES", "").split(",") if name.strip()]

# ACM certificate ARN covering DOMAIN_NAMES (must live in us-east-1)
CERTIFICATE_ARN = os.environ.get("CERTIFICATE_ARN") or None

# Logging level for the CDK app and the verification script
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
