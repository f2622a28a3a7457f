"""Field validation and pagination helpers."""
from datetime import datetime, timedelta, timezone

import pytest

from wtt.schemas import CompanyModel
from wtt.utils.datetime_utils import to_iso_string, to_naive_utc
from wtt.utils.exceptions import ValidationError
from wtt.utils.validators import paginate, reject_client_id, require_non_empty


def test_paginate_window():
    items = list(range(10))

    assert paginate(items) == items
    assert paginate(items, 3, 4) == [3, 4, 5, 6]
    assert paginate(items, 8, 5) == [8, 9]
    assert paginate(items, 10, 5) == []
    assert paginate(items, 50) == []


def test_paginate_rejects_negative_values():
    with pytest.raises(ValidationError):
        paginate([1], -1)
    with pytest.raises(ValidationError):
        paginate([1], 0, -1)


def test_require_non_empty():
    assert require_non_empty("Acme", "title", "company") == "Acme"
    for value in (None, "", "  "):
        with pytest.raises(ValidationError):
            require_non_empty(value, "title", "company")


def test_reject_client_id():
    reject_client_id("", "company")
    reject_client_id(None, "company")
    with pytest.raises(ValidationError):
        reject_client_id("abc", "company")


def test_audit_timestamps_normalized_to_naive_utc():
    company = CompanyModel(created_at="2026-01-21T15:58:00+02:00")

    assert company.created_at == datetime(2026, 1, 21, 13, 58)
    assert company.created_at.tzinfo is None


def test_iso_string_has_z_suffix():
    aware = datetime(2026, 1, 21, 15, 58, tzinfo=timezone(timedelta(hours=2)))

    assert to_iso_string(aware) == "2026-01-21T13:58:00.000Z"
    assert to_iso_string(None) is None
    assert to_naive_utc(None) is None
