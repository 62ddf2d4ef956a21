import boto3
import pytest
import urllib3
from botocore.stub import Stubber
from datetime import datetime
from urllib3 import HTTPHeaderDict

from website_deployment.distribution.response_headers import EXPECTED_SECURITY_HEADERS
from website_deployment.verification.site_checks import (
    VerificationError,
    check_bucket_not_public,
    check_https_redirect,
    check_not_found_page,
    check_object_retained,
    check_security_headers,
    get_stack_outputs,
    run_checks,
)

DOMAIN = "d111111abcdef8.cloudfront.net"
NOT_FOUND_BODY = b"<h1>not found</h1>"


class FakeResponse:
    def __init__(self, status, headers=None, data=b""):
        self.status = status
        self.headers = HTTPHeaderDict(headers or {})
        self.data = data


class FakePool:
    """Answers like a correctly deployed site unless told otherwise."""

    def __init__(self, overrides=None, error=None):
        self.overrides = overrides or {}
        self.error = error
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.error:
            raise self.error
        if url in self.overrides:
            return self.overrides[url]
        if url.startswith("http://"):
            return FakeResponse(301, {"Location": "https://" + url[len("http://"):]})
        if ".s3." in url:
            return FakeResponse(403)
        if url in (f"https://{DOMAIN}/", f"https://{DOMAIN}/index.html", f"https://{DOMAIN}/kept.html"):
            return FakeResponse(200, EXPECTED_SECURITY_HEADERS, b"<h1>home</h1>")
        return FakeResponse(404, EXPECTED_SECURITY_HEADERS, NOT_FOUND_BODY)


def make_cloudformation_client():
    return boto3.client(
        "cloudformation",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def describe_stacks_response(outputs):
    return {
        "Stacks": [
            {
                "StackName": "website-test",
                "CreationTime": datetime(2024, 1, 1),
                "StackStatus": "CREATE_COMPLETE",
                "Outputs": outputs,
            }
        ]
    }


def test_https_redirect_passes_for_redirect_to_same_host():
    result = check_https_redirect(FakePool(), DOMAIN)

    assert result.passed
    assert "301" in result.detail


def test_https_redirect_fails_when_http_is_served():
    pool = FakePool(overrides={f"http://{DOMAIN}/": FakeResponse(200)})

    result = check_https_redirect(pool, DOMAIN)

    assert not result.passed


def test_https_redirect_fails_for_redirect_elsewhere():
    pool = FakePool(overrides={
        f"http://{DOMAIN}/": FakeResponse(302, {"Location": "https://evil.example.com/"})
    })

    assert not check_https_redirect(pool, DOMAIN).passed


def test_https_redirect_fails_for_host_extending_the_domain():
    pool = FakePool(overrides={
        f"http://{DOMAIN}/": FakeResponse(301, {"Location": f"https://{DOMAIN}.attacker.example/"})
    })

    result = check_https_redirect(pool, DOMAIN)

    assert not result.passed
    assert "attacker.example" in result.detail


def test_https_redirect_fails_for_other_port_or_path():
    for location in (f"https://{DOMAIN}:8443/", f"https://{DOMAIN}/elsewhere", f"http://{DOMAIN}/"):
        pool = FakePool(overrides={f"http://{DOMAIN}/": FakeResponse(301, {"Location": location})})

        assert not check_https_redirect(pool, DOMAIN).passed, location


def test_https_redirect_accepts_explicit_default_port():
    pool = FakePool(overrides={
        f"http://{DOMAIN}/": FakeResponse(301, {"Location": f"https://{DOMAIN}:443/"})
    })

    assert check_https_redirect(pool, DOMAIN).passed


def test_requests_do_not_follow_redirects():
    pool = FakePool()

    check_https_redirect(pool, DOMAIN)

    _, _, kwargs = pool.requests[0]
    assert kwargs["redirect"] is False


def test_security_headers_pass_with_exact_values():
    result = check_security_headers(FakePool(), DOMAIN)

    assert result.passed


def test_security_headers_names_are_case_insensitive():
    headers = {name.lower(): value for name, value in EXPECTED_SECURITY_HEADERS.items()}
    pool = FakePool(overrides={f"https://{DOMAIN}/": FakeResponse(200, headers)})

    assert check_security_headers(pool, DOMAIN).passed


def test_security_headers_report_wrong_and_missing_values():
    headers = dict(EXPECTED_SECURITY_HEADERS)
    headers["X-Frame-Options"] = "SAMEORIGIN"
    del headers["Strict-Transport-Security"]
    pool = FakePool(overrides={f"https://{DOMAIN}/": FakeResponse(200, headers)})

    result = check_security_headers(pool, DOMAIN)

    assert not result.passed
    assert "X-Frame-Options" in result.detail
    assert "Strict-Transport-Security" in result.detail
    assert "Referrer-Policy" not in result.detail


def test_not_found_page_matches_body():
    result = check_not_found_page(FakePool(), DOMAIN, expected_body=NOT_FOUND_BODY)

    assert result.passed


def test_not_found_page_fails_on_other_body():
    result = check_not_found_page(FakePool(), DOMAIN, expected_body=b"something else")

    assert not result.passed
    assert "body" in result.detail


def test_not_found_page_fails_when_origin_403_leaks():
    pool = FakePool(overrides={f"https://{DOMAIN}/missing.html": FakeResponse(403)})

    result = check_not_found_page(pool, DOMAIN, path="/missing.html")

    assert not result.passed
    assert "403" in result.detail


def test_bucket_not_public_passes_when_every_request_denied():
    pool = FakePool()

    result = check_bucket_not_public(pool, "website-bucket", "us-east-1")

    assert result.passed
    assert all(url.startswith("https://website-bucket.s3.us-east-1.amazonaws.com/")
               for _, url, _ in pool.requests)


def test_bucket_not_public_fails_when_object_readable():
    url = "https://website-bucket.s3.us-east-1.amazonaws.com/index.html"
    pool = FakePool(overrides={url: FakeResponse(200)})

    result = check_bucket_not_public(pool, "website-bucket", "us-east-1")

    assert not result.passed
    assert "/index.html answered 200" in result.detail


def test_object_retained():
    assert check_object_retained(FakePool(), DOMAIN, "/kept.html").passed
    assert not check_object_retained(FakePool(), DOMAIN, "/gone.html").passed


def test_run_checks_all_pass():
    report = run_checks(
        DOMAIN,
        http=FakePool(),
        bucket_name="website-bucket",
        region="us-east-1",
        not_found_body=NOT_FOUND_BODY,
        retained_paths=["/kept.html"],
    )

    assert report.passed
    assert report.failures == []
    names = [result.name for result in report.results]
    assert "bucket_not_public" in names
    assert "object_retained /kept.html" in names


def test_run_checks_verifies_headers_beyond_the_root_path():
    pool = FakePool(overrides={
        f"https://{DOMAIN}/index.html": FakeResponse(200, {"X-Frame-Options": "DENY"})
    })

    report = run_checks(DOMAIN, http=pool)

    assert not report.passed
    assert [result.name for result in report.failures] == ["security_headers /index.html"]
    assert f"https://{DOMAIN}/index.html" in [url for _, url, _ in pool.requests]


def test_run_checks_skips_bucket_check_without_bucket():
    report = run_checks(DOMAIN, http=FakePool())

    assert report.passed
    assert "bucket_not_public" not in [result.name for result in report.results]


def test_run_checks_records_transport_errors_as_failures():
    pool = FakePool(error=urllib3.exceptions.MaxRetryError(None, f"https://{DOMAIN}/"))

    report = run_checks(DOMAIN, http=pool)

    assert not report.passed
    assert len(report.failures) == len(report.results)
    assert all("request failed" in result.detail for result in report.failures)


def test_get_stack_outputs_keys_by_export_name():
    client = make_cloudformation_client()
    stubber = Stubber(client)
    stubber.add_response(
        "describe_stacks",
        describe_stacks_response([
            {
                "OutputKey": "DeploymentCloudFrontDomainName1A2B3C4D",
                "OutputValue": DOMAIN,
                "ExportName": "cloudFrontDomainName",
            },
            {"OutputKey": "Unexported", "OutputValue": "value"},
        ]),
        {"StackName": "website-test"},
    )

    with stubber:
        outputs = get_stack_outputs("website-test", client)

    assert outputs == {"cloudFrontDomainName": DOMAIN, "Unexported": "value"}


def test_get_stack_outputs_missing_stack():
    client = make_cloudformation_client()
    stubber = Stubber(client)
    stubber.add_client_error(
        "describe_stacks",
        service_error_code="ValidationError",
        service_message="Stack with id website-test does not exist",
        http_status_code=400,
    )

    with stubber, pytest.raises(VerificationError, match="Unable to describe stack"):
        get_stack_outputs("website-test", client)


def test_get_stack_outputs_empty_response():
    client = make_cloudformation_client()
    stubber = Stubber(client)
    stubber.add_response("describe_stacks", {"Stacks": []}, {"StackName": "website-test"})

    with stubber, pytest.raises(VerificationError, match="not found"):
        get_stack_outputs("website-test", client)
