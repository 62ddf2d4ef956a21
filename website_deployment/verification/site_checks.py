"""
Post-deployment checks run against a live website deployment.

Each check issues real HTTP requests against the CloudFront domain (or the
bucket's native S3 endpoint) and returns a CheckResult describing what was
observed. Stack outputs are looked up by export name through CloudFormation.
"""

import logging
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional

import boto3
import urllib3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, Field, ConfigDict

from ..distribution.response_headers import EXPECTED_SECURITY_HEADERS

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = (301, 302, 307, 308)
DEFAULT_TIMEOUT = urllib3.Timeout(connect=5.0, read=15.0)


class VerificationError(Exception):
    """Raised when the deployment cannot be verified at all."""


class CheckResult(BaseModel):
    """Outcome of a single check."""
    name: str = Field(..., description="Name of the check")
    passed: bool = Field(..., description="Whether the deployment behaved as expected")
    detail: str = Field(default="", description="What was observed")

    model_config = ConfigDict(extra='forbid')


class VerificationReport(BaseModel):
    """All check results for one deployment."""
    domain_name: str = Field(..., description="CloudFront domain name that was checked")
    results: List[CheckResult] = Field(default_factory=list)

    model_config = ConfigDict(extra='forbid')

    @property
    def passed(self) -> bool:
        return bool(self.results) and all(result.passed for result in self.results)

    @property
    def failures(self) -> List[CheckResult]:
        return [result for result in self.results if not result.passed]


def get_stack_outputs(stack_name: str, cloudformation_client: Any = None) -> Dict[str, str]:
    """
    Return the outputs of a deployed stack keyed by export name.

    Outputs without an export name are keyed by their output key.
    """
    client = cloudformation_client or boto3.client('cloudformation')

    try:
        response = client.describe_stacks(StackName=stack_name)
    except (ClientError, BotoCoreError) as e:
        raise VerificationError(f"Unable to describe stack {stack_name}: {e}") from e

    stacks = response.get('Stacks', [])
    if not stacks:
        raise VerificationError(f"Stack {stack_name} not found")

    outputs = {}
    for output in stacks[0].get('Outputs', []):
        key = output.get('ExportName') or output['OutputKey']
        outputs[key] = output['OutputValue']

    logger.debug(f"Stack {stack_name} outputs: {outputs}")
    return outputs


def _get(http: urllib3.PoolManager, url: str):
    logger.info(f"GET {url}")
    return http.request("GET", url, redirect=False, retries=False, timeout=DEFAULT_TIMEOUT)


def _is_https_equivalent(location: str, domain: str, path: str) -> bool:
    """The redirect target must be the same host and path over HTTPS."""
    try:
        url = urllib3.util.parse_url(location)
    except urllib3.exceptions.LocationParseError:
        return False

    return (
        url.scheme == "https"
        and (url.host or "").lower() == domain.lower()
        and url.port in (None, 443)
        and (url.path or "/") == path
    )


def check_https_redirect(http: urllib3.PoolManager, domain: str) -> CheckResult:
    """Plain HTTP requests must be redirected to the HTTPS equivalent."""
    response = _get(http, f"http://{domain}/")
    location = response.headers.get("Location", "")

    passed = response.status in REDIRECT_STATUSES and _is_https_equivalent(location, domain, "/")
    return CheckResult(
        name="https_redirect",
        passed=passed,
        detail=f"status {response.status}, location '{location}'"
    )


def check_security_headers(http: urllib3.PoolManager, domain: str, path: str = "/") -> CheckResult:
    """Every security header must be present with its exact configured value."""
    response = _get(http, f"https://{domain}{path}")

    mismatches = []
    for header, expected in EXPECTED_SECURITY_HEADERS.items():
        actual = response.headers.get(header)
        if actual != expected:
            mismatches.append(f"{header}: expected '{expected}', got '{actual}'")

    return CheckResult(
        name=f"security_headers {path}",
        passed=not mismatches,
        detail="; ".join(mismatches) if mismatches else "all security headers present"
    )


def check_not_found_page(
    http: urllib3.PoolManager,
    domain: str,
    path: Optional[str] = None,
    expected_body: Optional[bytes] = None
) -> CheckResult:
    """A missing path must answer 404, with the body of the not found page when given."""
    path = path or f"/{uuid.uuid4().hex}.html"
    response = _get(http, f"https://{domain}{path}")

    if response.status != 404:
        return CheckResult(name="not_found_page", passed=False, detail=f"{path} answered {response.status}")

    if expected_body is not None and response.data != expected_body:
        return CheckResult(
            name="not_found_page",
            passed=False,
            detail=f"{path} answered 404 but the body does not match the not found page"
        )

    return CheckResult(name="not_found_page", passed=True, detail=f"{path} answered 404")


def check_bucket_not_public(http: urllib3.PoolManager, bucket_name: str, region: str) -> CheckResult:
    """Direct requests to the bucket endpoint must be denied, whether the object exists or not."""
    endpoint = f"https://{bucket_name}.s3.{region}.amazonaws.com"

    allowed = []
    for path in ("/", "/index.html", f"/{uuid.uuid4().hex}.html"):
        response = _get(http, f"{endpoint}{path}")
        if response.status != 403:
            allowed.append(f"{path} answered {response.status}")

    return CheckResult(
        name="bucket_not_public",
        passed=not allowed,
        detail="; ".join(allowed) if allowed else f"{endpoint} denies direct access"
    )


def check_object_retained(http: urllib3.PoolManager, domain: str, path: str) -> CheckResult:
    """A file removed from the source directory must still be served after a redeploy."""
    response = _get(http, f"https://{domain}{path}")
    return CheckResult(
        name=f"object_retained {path}",
        passed=response.status == 200,
        detail=f"{path} answered {response.status}"
    )


def run_check(name: str, check: Callable[..., CheckResult], *args, **kwargs) -> CheckResult:
    """Run a check, recording transport errors as a failed result."""
    try:
        return check(*args, **kwargs)
    except urllib3.exceptions.HTTPError as e:
        logger.error(f"Check {name} failed with a transport error: {e}")
        return CheckResult(name=name, passed=False, detail=f"request failed: {e}")


def run_checks(
    domain: str,
    http: Optional[urllib3.PoolManager] = None,
    bucket_name: Optional[str] = None,
    region: Optional[str] = None,
    not_found_body: Optional[bytes] = None,
    retained_paths: Iterable[str] = (),
    header_paths: Iterable[str] = ("/", "/index.html")
) -> VerificationReport:
    """Run every applicable check against a deployment."""
    http = http or urllib3.PoolManager()
    report = VerificationReport(domain_name=domain)

    report.results.append(run_check("https_redirect", check_https_redirect, http, domain))
    for path in header_paths:
        report.results.append(run_check("security_headers", check_security_headers, http, domain, path))
    report.results.append(
        run_check("not_found_page", check_not_found_page, http, domain, expected_body=not_found_body)
    )

    if bucket_name and region:
        report.results.append(
            run_check("bucket_not_public", check_bucket_not_public, http, bucket_name, region)
        )
    else:
        logger.warning("Bucket name or region unknown, skipping direct bucket access check")

    for path in retained_paths:
        report.results.append(run_check("object_retained", check_object_retained, http, domain, path))

    for result in report.failures:
        logger.warning(f"Check {result.name} failed: {result.detail}")

    return report
