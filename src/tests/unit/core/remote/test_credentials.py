# -----------------------------------------------------------------------------
# /*
#  * Copyright (C) 2025 CodeStory
#  *
#  * This program is free software; you can redistribute it and/or modify
#  * it under the terms of the GNU General Public License as published by
#  * the Free Software Foundation; Version 2.
#  *
#  * This program is distributed in the hope that it will be useful,
#  * but WITHOUT ANY WARRANTY; without even the implied warranty of
#  * MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
#  * GNU General Public License for more details.
#  *
#  * You should have received a copy of the GNU General Public License
#  * along with this program; if not, you can contact us at support@codestory.build
#  */
# -----------------------------------------------------------------------------

import pytest

from merges.core.exceptions import ConfigurationError
from merges.core.remote import credentials
from merges.core.remote.credentials import find_github_token, resolve_github_token


@pytest.fixture
def no_gh(monkeypatch):
    monkeypatch.setattr(credentials, "_token_from_gh", lambda: None)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)


def test_configured_token_wins(monkeypatch):
    monkeypatch.setattr(credentials, "_token_from_gh", lambda: "from-gh")

    assert find_github_token("configured") == "configured"


def test_gh_cli_before_environment(monkeypatch):
    monkeypatch.setattr(credentials, "_token_from_gh", lambda: "from-gh")
    monkeypatch.setenv("GITHUB_TOKEN", "from-env")

    assert find_github_token() == "from-gh"


def test_environment_fallback(no_gh, monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", " from-env ")

    assert find_github_token() == "from-env"


def test_no_token(no_gh):
    assert find_github_token() is None
    with pytest.raises(ConfigurationError) as exc_info:
        resolve_github_token()
    assert "gh auth login" in exc_info.value.details
