"""Tests for the Tinify compression client."""

import pytest
import requests

from ogparser.exceptions import OptimizationError
from ogparser.optimizer import TINIFY_SHRINK_URL, TinifyOptimizer

from conftest import FakeResponse, FakeSession

OUTPUT_URL = "https://api.tinify.com/output/abc123"


def test_compress_follows_location_header():
    session = FakeSession(
        routes={OUTPUT_URL: FakeResponse(b"small")},
        post_routes={
            TINIFY_SHRINK_URL: FakeResponse(
                b"{}", status_code=201, headers={"Location": OUTPUT_URL}
            )
        },
    )

    assert TinifyOptimizer("key", session).compress(b"large image") == b"small"

    upload, download = session.calls
    assert upload["method"] == "POST"
    assert upload["data"] == b"large image"
    assert upload["auth"] == ("api", "key")
    assert download["url"] == OUTPUT_URL
    assert download["auth"] == ("api", "key")


def test_compress_falls_back_to_json_output_url():
    session = FakeSession(
        routes={OUTPUT_URL: FakeResponse(b"small")},
        post_routes={
            TINIFY_SHRINK_URL: FakeResponse(
                b"{}", status_code=201, json_data={"output": {"url": OUTPUT_URL}}
            )
        },
    )
    assert TinifyOptimizer("key", session).compress(b"data") == b"small"


def test_compress_rejects_bad_credentials():
    session = FakeSession(post_routes={TINIFY_SHRINK_URL: FakeResponse(b"{}", status_code=401)})
    with pytest.raises(OptimizationError):
        TinifyOptimizer("wrong", session).compress(b"data")


def test_compress_network_error():
    session = FakeSession(post_routes={TINIFY_SHRINK_URL: requests.ConnectionError("down")})
    with pytest.raises(OptimizationError):
        TinifyOptimizer("key", session).compress(b"data")


def test_compress_without_output_url():
    session = FakeSession(post_routes={TINIFY_SHRINK_URL: FakeResponse(b"{}", status_code=201)})
    with pytest.raises(OptimizationError):
        TinifyOptimizer("key", session).compress(b"data")


def test_compress_empty_result():
    session = FakeSession(
        routes={OUTPUT_URL: FakeResponse(b"")},
        post_routes={
            TINIFY_SHRINK_URL: FakeResponse(b"", status_code=201, headers={"Location": OUTPUT_URL})
        },
    )
    with pytest.raises(OptimizationError):
        TinifyOptimizer("key", session).compress(b"data")
