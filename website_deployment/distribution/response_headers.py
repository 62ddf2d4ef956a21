"""
Response headers policy construct applying security headers to CloudFront responses.
"""

from constructs import Construct
from aws_cdk import (
    aws_cloudfront as cloudfront,
    Stack,
    Duration
)

CONTENT_SECURITY_POLICY = "default-src https:;"
HSTS_MAX_AGE = Duration.days(2 * 365)

# Header values as seen by a client of the distribution
EXPECTED_SECURITY_HEADERS = {
    "Content-Security-Policy": CONTENT_SECURITY_POLICY,
    "Strict-Transport-Security": f"max-age={int(HSTS_MAX_AGE.to_seconds())}; includeSubDomains; preload",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-XSS-Protection": "1; mode=block",
    "X-Frame-Options": "DENY",
}


class ResponseHeadersConstruct(Construct):
    """
    Security headers response header policy.

    The security headers behavior includes the following:

    - Content Security Policy
    - Strict Transport Security
    - X-Content-Type-Options
    - Referrer Policy
    - XSS Protection
    - Frame Options

    Every header overrides whatever value the origin returned.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.response_headers_policy = None

        self._stack_name = Stack.of(self).stack_name

        self.create_security_headers_policy()

    def create_security_headers_policy(self):
        """Create the CloudFront response headers policy."""

        self.response_headers_policy = cloudfront.ResponseHeadersPolicy(
            self, "CloudFrontResponseHeaderPolicy",
            response_headers_policy_name=f"{self._stack_name}-security-headers",
            comment="Security headers response header policy",
            security_headers_behavior=cloudfront.ResponseSecurityHeadersBehavior(
                content_security_policy=cloudfront.ResponseHeadersContentSecurityPolicy(
                    override=True,
                    content_security_policy=CONTENT_SECURITY_POLICY
                ),
                strict_transport_security=cloudfront.ResponseHeadersStrictTransportSecurity(
                    override=True,
                    access_control_max_age=HSTS_MAX_AGE,
                    include_subdomains=True,
                    preload=True
                ),
                content_type_options=cloudfront.ResponseHeadersContentTypeOptions(
                    override=True
                ),
                referrer_policy=cloudfront.ResponseHeadersReferrerPolicy(
                    override=True,
                    referrer_policy=cloudfront.HeadersReferrerPolicy.STRICT_ORIGIN_WHEN_CROSS_ORIGIN
                ),
                xss_protection=cloudfront.ResponseHeadersXSSProtection(
                    override=True,
                    protection=True,
                    mode_block=True
                ),
                frame_options=cloudfront.ResponseHeadersFrameOptions(
                    override=True,
                    frame_option=cloudfront.HeadersFrameOption.DENY
                )
            )
        )
