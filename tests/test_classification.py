import pytest

from conftest import make_job, make_task
from kpi_dashboard.services.classifier import classify_job, classify_task, split_jobs, split_tasks
from kpi_dashboard.services.taxonomy import STATUS_COLORS, StatusCategory, classify, is_active_job_label


@pytest.mark.parametrize(
    "label,category",
    [
        ("Completed", StatusCategory.completed),
        ("Job Done", StatusCategory.completed),
        ("Pending Complete", StatusCategory.completed),
        ("Pending Completion", StatusCategory.pending),
        ("Work In Progress", StatusCategory.active),
        ("Active", StatusCategory.active),
        ("Pending Customer Signature", StatusCategory.pending),
        ("New Lead", StatusCategory.pending),
        ("Cancelled", StatusCategory.cancelled),
        ("Estimating", StatusCategory.other),
        ("", StatusCategory.other),
        (None, StatusCategory.other),
    ],
)
def test_classify_label(label, category):
    result = classify(label)
    assert result.category == category
    assert result.color == STATUS_COLORS[category]


def test_active_job_labels_include_misspelled_approval():
    assert is_active_job_label("Pending Customer Aproval")
    assert is_active_job_label("Appointment Scheduled")
    assert not is_active_job_label("Lost")
    assert not is_active_job_label("")


def test_completed_wins_over_active_flag():
    job = make_job(1, status_name="Completed", active=True)
    c = classify_job(job)
    assert c.completed and not c.active
    assert c.category == "completed"


def test_completed_status_code_without_label():
    job = make_job(1, status_name="", status="completed", active=False)
    assert classify_job(job).completed


def test_active_requires_open_job():
    assert classify_job(make_job(1, "In Progress", active=True)).active
    assert not classify_job(make_job(2, "In Progress", active=False)).active
    assert not classify_job(make_job(3, "In Progress", active=True, is_closed=True)).active
    assert not classify_job(make_job(4, "In Progress", active=True, is_archived=True)).active


def test_unknown_label_falls_through_to_other():
    c = classify_job(make_job(1, "Weird Custom Stage", active=True))
    assert c.category == "other"
    assert not c.completed and not c.active


def test_classification_is_deterministic():
    job = make_job(1, "Pending Customer Approval", active=True)
    assert classify_job(job) == classify_job(job)


def test_split_jobs_counts():
    jobs = [make_job(i, "Completed", active=False) for i in range(3)]
    jobs += [make_job(10 + i, "In Progress") for i in range(2)]
    jobs += [make_job(20, "Cancelled", active=False)]
    active, completed = split_jobs(jobs)
    assert len(active) == 2
    assert len(completed) == 3


def test_task_classification():
    done_flag = make_task(1, completed=True)
    done_status = make_task(2, status="Complete", is_active=True)
    open_task = make_task(3)
    archived = make_task(4, is_archived=True)

    assert classify_task(done_flag).completed
    assert classify_task(done_status).completed
    assert not classify_task(done_status).pending
    assert classify_task(open_task).pending
    assert not classify_task(archived).pending

    pending, completed = split_tasks([done_flag, done_status, open_task, archived])
    assert [t.id for t in pending] == ["task-3"]
    assert len(completed) == 2
