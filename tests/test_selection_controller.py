"""
Tests for host selection handling.
"""
from enlarger.models.session_model import Provenance


class TestSelectionController:
    """Test fetching the image of the selected element."""

    def test_selected_image_is_loaded(self, harness, png_factory):
        harness.host.images["ref-1"] = png_factory(30, 20)
        harness.host.select("ref-1")
        assert harness.session.snapshot.asset is None

        harness.scheduler.run_pending()
        state = harness.session.snapshot
        assert state.provenance is Provenance.HOST_SELECTED
        assert (state.asset.width, state.asset.height) == (30, 20)
        assert state.asset.name == "selected-image.png"

    def test_latest_selection_wins(self, harness, png_factory):
        """Test a fetch for an older selection does not overwrite a newer one."""
        harness.host.images["ref-1"] = png_factory(30, 20)
        harness.host.images["ref-2"] = png_factory(40, 30)
        harness.host.select("ref-1")
        harness.host.select("ref-2", element_id="element-2")

        harness.scheduler.run_pending()
        state = harness.session.snapshot
        assert state.source_ref == "ref-2"
        assert (state.asset.width, state.asset.height) == (40, 30)

    def test_fetch_failure_resets_and_reports(self, harness):
        errors = []
        harness.selection.on_error = errors.append
        harness.host.select("ref-missing")
        harness.scheduler.run_pending()

        assert harness.session.snapshot.provenance is Provenance.UNKNOWN
        assert errors == ["Unknown asset: ref-missing"]

    def test_stale_failure_is_silent(self, harness, png_factory):
        errors = []
        harness.selection.on_error = errors.append
        harness.host.images["ref-2"] = png_factory(40, 30)
        harness.host.select("ref-missing")
        harness.host.select("ref-2")
        harness.scheduler.run_pending()

        assert errors == []
        assert harness.session.snapshot.source_ref == "ref-2"

    def test_undecodable_selection(self, harness):
        errors = []
        harness.selection.on_error = errors.append
        harness.host.images["ref-bad"] = b"garbage"
        harness.host.select("ref-bad")
        harness.scheduler.run_pending()
        assert errors == ["Could not read image: selected-image.png"]

    def test_stop_unsubscribes(self, harness, png_factory):
        harness.selection.stop()
        harness.host.images["ref-1"] = png_factory(30, 20)
        harness.host.select("ref-1")
        assert harness.session.snapshot.provenance is Provenance.UNKNOWN
        assert harness.scheduler.background == []
