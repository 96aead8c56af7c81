from datetime import datetime, timezone

import pytest

from kpi_dashboard.services.normalize import (
    extract_items,
    normalize_activity,
    normalize_contact,
    normalize_job,
    normalize_many,
    normalize_summary,
    normalize_task,
    parse_timestamp,
)

UTC = timezone.utc


@pytest.mark.parametrize(
    "value,expected",
    [
        (1735689600, datetime(2025, 1, 1, tzinfo=UTC)),
        (1735689600000, datetime(2025, 1, 1, tzinfo=UTC)),
        ("1735689600", datetime(2025, 1, 1, tzinfo=UTC)),
        ("2025-01-01T00:00:00Z", datetime(2025, 1, 1, tzinfo=UTC)),
        ("2025-01-01T00:00:00", datetime(2025, 1, 1, tzinfo=UTC)),
        (datetime(2025, 1, 1), datetime(2025, 1, 1, tzinfo=UTC)),
        (None, None),
        ("", None),
        ("not a date", None),
        (True, None),
    ],
)
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected


def test_extract_items_envelopes():
    assert extract_items([{"a": 1}, "junk"]) == [{"a": 1}]
    assert extract_items({"results": [{"a": 1}]}) == [{"a": 1}]
    assert extract_items({"files": [{"b": 2}]}) == [{"b": 2}]
    assert extract_items({"count": 0}) == []
    assert extract_items(None) == []


def test_normalize_job_aliases():
    job = normalize_job(
        {
            "jnid": "abc",
            "number": "1042",
            "status_name": "Work In Progress",
            "is_active": "true",
            "date_created": 1735689600,
            "last_estimate": "12,500.50",
            "primary": {"name": "Rodriguez Residence"},
        }
    )
    assert job.id == "abc"
    assert job.display_name == "Job #1042"
    assert job.is_active is True
    assert job.last_estimate == 12500.5
    assert job.customer == "Rodriguez Residence"
    assert job.created_at == datetime(2025, 1, 1, tzinfo=UTC)


def test_normalize_job_rejects_non_finite_estimate():
    assert normalize_job({"last_estimate": "nan"}).last_estimate is None
    assert normalize_job({"last_estimate": "n/a"}).last_estimate is None


def test_normalize_contact_lead_is_not_customer():
    lead = normalize_contact({"id": "1", "first_name": "Ana", "is_lead": True})
    customer = normalize_contact({"id": "2", "firstName": "Luis", "lastName": "Martin", "email": "l@example.com"})
    assert not lead.is_customer
    assert customer.is_customer
    assert customer.full_name == "Luis Martin"


@pytest.mark.parametrize(
    "email,expected",
    [
        ("a@b.com", "a@b.com"),
        (["first@b.com", "second@b.com"], "first@b.com"),
        (12345, "12345"),
        ([], None),
        ("", None),
    ],
)
def test_normalize_contact_email_is_text(email, expected):
    assert normalize_contact({"id": "1", "email": email}).email == expected


def test_normalize_task_owner_list():
    task = normalize_task({"title": "Follow up", "owners": [{"name": "Carlos Lopez"}], "completed": "true"})
    assert task.owner_name == "Carlos Lopez"
    assert task.is_completed
    assert task.id == "task_0"


def test_normalize_many_assigns_fallback_ids():
    activities = normalize_many({"activities": [{"note": "a"}, {"note": "b"}]}, normalize_activity)
    assert [a.id for a in activities] == ["activity_0", "activity_1"]


def test_normalize_summary(now):
    snapshot = normalize_summary(
        {
            "period": "current-month",
            "kpis": {
                "totalContacts": {"value": 320, "change": 4.5},
                "periodRevenue": {"value": "150000", "change": 12},
                "teamProductivity": 81.5,
                "activeJobs": {"value": None},
            },
            "charts": {
                "monthlyTrends": [{"month": "May", "contacts": 30, "jobs": 12, "revenue": 90000}],
                "jobStatus": [{"name": "Completed", "value": 4}],
            },
            "recentActivity": [{"id": "x", "title": "Job sold"}],
            "summary": {"total_jobs": 44, "total_contacts": 320},
        },
        now,
    )
    assert snapshot.kpis["total_contacts"].value == 320
    assert snapshot.kpis["monthly_revenue"].change_percent == 12
    assert snapshot.kpis["team_productivity"].value == 81.5
    assert "active_jobs" not in snapshot.kpis
    assert snapshot.trends[0].revenue == 90000
    assert snapshot.job_status[0].color == "#2e7d32"
    assert snapshot.job_status[0].revenue == 60000
    assert snapshot.recent_activity[0].timestamp == now
    assert snapshot.total_jobs == 44


def test_normalize_summary_clamps_rates(now):
    snapshot = normalize_summary(
        {
            "kpis": {
                "conversionRate": {"value": 250, "change": 3},
                "teamProductivity": 150,
                "totalContacts": {"value": 250},
                "activeJobs": -4,
            }
        },
        now,
    )
    assert snapshot.kpis["conversion_rate"].value == 100
    assert snapshot.kpis["conversion_rate"].change_percent == 3
    assert snapshot.kpis["team_productivity"].value == 100
    assert snapshot.kpis["total_contacts"].value == 250
    assert snapshot.kpis["active_jobs"].value == 0


def test_normalize_summary_rejects_non_objects(now):
    with pytest.raises(ValueError):
        normalize_summary(["not", "a", "summary"], now)
