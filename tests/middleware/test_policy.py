# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for the interception policy."""

import pytest

from stylegate.cache import ContentTypeCache
from stylegate.middleware.policy import (
    InterceptionPolicy,
    is_stylesheet_content_type,
    is_stylesheet_path,
)


@pytest.fixture
def policy():
    return InterceptionPolicy(ContentTypeCache())


class TestStylesheetMatching:

    @pytest.mark.parametrize("path", ["/style.css", "/a/b/theme.less", "/STYLE.CSS", "/x.Less"])
    def test_stylesheet_paths(self, path):
        assert is_stylesheet_path(path)

    @pytest.mark.parametrize("path", ["/script.js", "/style.css.map", "/css", "/styles/", "/style.scss"])
    def test_other_paths(self, path):
        assert not is_stylesheet_path(path)

    def test_content_types(self):
        assert is_stylesheet_content_type("text/css")
        assert is_stylesheet_content_type("text/css; charset=utf-8")
        assert is_stylesheet_content_type("TEXT/CSS")
        assert not is_stylesheet_content_type("text/html")
        assert not is_stylesheet_content_type("")
        assert not is_stylesheet_content_type(None)


class TestInterceptionPolicy:

    def test_extension_makes_candidate(self, policy):
        assert policy.is_candidate("/style.css")

    def test_unknown_path_is_not_candidate(self, policy):
        assert not policy.is_candidate("/bundle")

    def test_cached_css_makes_candidate(self, policy):
        policy.observe("/bundle", 200, "text/css; charset=utf-8")
        assert policy.is_candidate("/bundle")

    def test_cached_other_type_is_not_candidate(self, policy):
        policy.observe("/bundle", 200, "application/javascript")
        assert not policy.is_candidate("/bundle")

    def test_observation_replaces_stale_entry(self, policy):
        policy.observe("/bundle", 200, "text/css")
        policy.observe("/bundle", 200, "text/html")
        assert not policy.is_candidate("/bundle")

    def test_missing_content_type_clears_entry(self, policy):
        policy.observe("/bundle", 200, "text/css")
        policy.observe("/bundle", 200, None)
        assert not policy.is_candidate("/bundle")

    def test_not_modified_is_not_recorded(self, policy):
        policy.observe("/bundle", 200, "text/css")
        policy.observe("/bundle", 304, None)
        assert policy.is_candidate("/bundle")

    def test_must_intercept_by_extension(self, policy):
        assert policy.must_intercept("/style.less", "text/plain")

    def test_must_intercept_by_content_type(self, policy):
        assert policy.must_intercept("/bundle", "text/css")

    def test_must_not_intercept_other(self, policy):
        assert not policy.must_intercept("/index.html", "text/html")
