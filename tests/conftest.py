from __future__ import annotations

from collections.abc import Iterator

import pytest

from agent_stream.models.settings import ENV_FIELDS
from agent_stream.tools.attachment_store import clear_attachment_data_store


@pytest.fixture(autouse=True)
def _clear_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_FIELDS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _reset_attachment_store() -> Iterator[None]:
    yield
    clear_attachment_data_store()
