"""
Tests for committing an enlarged result to the design.
"""
from enlarger.models.session_model import AcceptanceResult


def finish_job(harness):
    harness.workflow.submit()
    harness.scheduler.run_pending()
    assert harness.session.snapshot.job.is_succeeded


class TestReplace:
    """Test replacing the originally selected element."""

    def test_replaces_selected_element(self, harness):
        """Test a host-selected source is replaced with parent_ref pointing at it."""
        harness.select_from_host("ref-original")
        finish_job(harness)
        assert harness.acceptance.accept_label() == "Replace"

        assert harness.acceptance.accept()
        harness.scheduler.run_pending()

        assert harness.session.snapshot.acceptance is AcceptanceResult.REPLACED
        assert harness.host.added == []
        upload = harness.host.uploads[0]
        assert upload.parent_ref == "ref-original"
        assert upload.mime_type == "image/png"
        assert upload.ai_disclosure == "app_generated"
        assert upload.url.startswith("data:image/png;base64,")
        assert upload.thumbnail_url == upload.url
        saved = harness.host.saved[0]
        assert saved[0].ref == "new-ref-1"

    def test_lost_selection_falls_back_to_add(self, harness):
        """Test a result is added when the source is no longer selected."""
        harness.select_from_host("ref-original")
        finish_job(harness)
        harness.host.select(None)
        assert harness.acceptance.accept_label() == "Add to design"

        harness.acceptance.accept()
        harness.scheduler.run_pending()
        assert harness.session.snapshot.acceptance is AcceptanceResult.ADDED
        assert harness.host.uploads == []
        assert len(harness.host.added) == 1

    def test_other_selection_falls_back_to_add(self, harness):
        harness.select_from_host("ref-original")
        finish_job(harness)
        harness.host.select("ref-other")

        harness.acceptance.accept()
        harness.scheduler.run_pending()
        assert harness.session.snapshot.acceptance is AcceptanceResult.ADDED


class TestAdd:
    """Test inserting the result as a new element."""

    def test_uploaded_source_is_added(self, harness):
        """Test an uploaded image never replaces a host element."""
        harness.upload(100, 80)
        harness.host.select("ref-unrelated")
        finish_job(harness)

        harness.acceptance.accept()
        harness.scheduler.run_pending()

        assert harness.session.snapshot.acceptance is AcceptanceResult.ADDED
        assert harness.host.uploads == []
        assert harness.host.added[0].startswith("data:image/png;base64,")

    def test_accept_only_once(self, harness):
        """Test repeated clicks commit a single element."""
        harness.upload(100, 80)
        finish_job(harness)
        assert harness.acceptance.accept()
        assert not harness.acceptance.accept()
        harness.scheduler.run_pending()
        assert not harness.acceptance.accept()
        harness.scheduler.run_pending()
        assert len(harness.host.added) == 1

    def test_dismissed_notice_keeps_single_commit(self, harness):
        """Test closing the success notice does not allow a second commit."""
        harness.upload(100, 80)
        finish_job(harness)
        harness.acceptance.accept()
        harness.scheduler.run_pending()
        assert not harness.session.snapshot.acceptance_dismissed

        harness.session.dismiss_acceptance_notice()
        state = harness.session.snapshot
        assert state.acceptance_dismissed
        assert state.acceptance is AcceptanceResult.ADDED

        assert not harness.acceptance.accept()
        harness.scheduler.run_pending()
        assert len(harness.host.added) == 1

    def test_new_job_restores_success_notice(self, harness):
        harness.upload(100, 80)
        finish_job(harness)
        harness.acceptance.accept()
        harness.scheduler.run_pending()
        harness.session.dismiss_acceptance_notice()

        finish_job(harness)
        assert harness.session.snapshot.acceptance is None
        assert not harness.session.snapshot.acceptance_dismissed
        harness.acceptance.accept()
        harness.scheduler.run_pending()
        state = harness.session.snapshot
        assert state.acceptance is AcceptanceResult.ADDED
        assert not state.acceptance_dismissed

    def test_nothing_to_accept(self, harness):
        harness.upload(100, 80)
        assert not harness.acceptance.accept()
        harness.workflow.submit()
        assert not harness.acceptance.accept()


class TestCommitFailures:
    """Test host failures and late commits."""

    def test_host_failure_is_reported(self, harness):
        harness.upload(100, 80)
        finish_job(harness)
        harness.host.fail_commit = True

        harness.acceptance.accept()
        harness.scheduler.run_pending()

        state = harness.session.snapshot
        assert state.acceptance is None
        assert state.acceptance_error == "Failed to add image to design: asset store unavailable"
        assert state.job.is_succeeded

    def test_retry_after_failure(self, harness):
        harness.upload(100, 80)
        finish_job(harness)
        harness.host.fail_commit = True
        harness.acceptance.accept()
        harness.scheduler.run_pending()

        harness.host.fail_commit = False
        assert harness.acceptance.accept()
        harness.scheduler.run_pending()
        assert harness.session.snapshot.acceptance is AcceptanceResult.ADDED
        assert harness.session.snapshot.acceptance_error is None

    def test_commit_after_reset_is_not_recorded(self, harness):
        harness.upload(100, 80)
        finish_job(harness)
        harness.acceptance.accept()
        harness.session.reset()
        harness.scheduler.run_pending()
        assert harness.session.snapshot.acceptance is None
