# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pytest configuration and shared fixtures."""

import pytest

from stylegate.config import clear_settings_cache


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def static_dir(tmp_path):
    """A directory of assets as a static file server would see it."""
    (tmp_path / "style.css").write_text(".foo { animation: bar; }", encoding="utf-8")
    (tmp_path / "style.less").write_text(".foo { animation: bar; }", encoding="utf-8")
    (tmp_path / "broken.css").write_text(".foo { animation: bar;", encoding="utf-8")
    (tmp_path / "script.js").write_text("console.log('hello');", encoding="utf-8")
    return tmp_path
