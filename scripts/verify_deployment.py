#!/usr/bin/env python3
"""
Verify a deployed website stack from the outside.

Reads the stack outputs from CloudFormation, then checks the live deployment:
HTTP to HTTPS redirect, security headers, the 404 page for missing paths and
that the bucket denies direct access.

Usage:
    python -m scripts.verify_deployment --stack-name WebsiteDeploymentStack
    python -m scripts.verify_deployment --retained-path /old-page.html
"""

import logging
import os
import sys

import boto3

from constants import STACK_NAME, WEBSITE_ASSET_PATH, DOMAIN_NAME_EXPORT, LOG_LEVEL
from website_deployment.verification.site_checks import (
    VerificationError,
    get_stack_outputs,
    run_checks,
)

logging.basicConfig(level=getattr(logging, LOG_LEVEL))
logger = logging.getLogger(__name__)


def read_not_found_page(asset_path: str):
    """Return the local 404.html contents, or None when the asset directory has none."""
    page_path = os.path.join(asset_path, "404.html")
    if not os.path.isfile(page_path):
        logger.warning(f"{page_path} not found, the 404 body will not be compared")
        return None
    with open(page_path, 'rb') as f:
        return f.read()


def verify_deployment(stack_name: str, region: str = None, asset_path: str = WEBSITE_ASSET_PATH,
                      retained_paths=()) -> bool:
    """Run all checks against the deployed stack and print a summary."""
    session = boto3.session.Session(region_name=region)
    region = session.region_name

    try:
        outputs = get_stack_outputs(stack_name, session.client('cloudformation'))
    except VerificationError as e:
        print(f"ERROR: {e}")
        return False

    domain = outputs.get(DOMAIN_NAME_EXPORT)
    if not domain:
        print(f"ERROR: Stack {stack_name} has no '{DOMAIN_NAME_EXPORT}' output")
        return False

    print("=" * 80)
    print(f"Verifying {stack_name} at https://{domain}")
    print("=" * 80)

    report = run_checks(
        domain,
        bucket_name=outputs.get(f"{stack_name}-HostingBucketName"),
        region=region,
        not_found_body=read_not_found_page(asset_path),
        retained_paths=retained_paths,
    )

    for result in report.results:
        status = "PASS" if result.passed else "FAIL"
        print(f"[{status}] {result.name} - {result.detail}")

    print("\n" + "=" * 80)
    if report.passed:
        print("[RESULT] All checks passed")
    else:
        print(f"[RESULT] {len(report.failures)} check(s) failed")

    return report.passed


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Verify a deployed website stack')
    parser.add_argument('--stack-name', default=STACK_NAME,
                        help=f'CloudFormation stack name (default: {STACK_NAME})')
    parser.add_argument('--region', help='AWS region of the stack (default: from the AWS configuration)')
    parser.add_argument('--asset-path', default=WEBSITE_ASSET_PATH,
                        help=f'Local website directory holding 404.html (default: {WEBSITE_ASSET_PATH})')
    parser.add_argument('--retained-path', action='append', default=[],
                        help='Path removed from the site that must still be served (repeatable)')

    args = parser.parse_args()

    passed = verify_deployment(
        stack_name=args.stack_name,
        region=args.region,
        asset_path=args.asset_path,
        retained_paths=args.retained_path
    )
    sys.exit(0 if passed else 1)
