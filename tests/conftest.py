"""
Pytest configuration and fixtures for the enlarger tests.
"""
import io
from dataclasses import dataclass, replace

import pytest
from PIL import Image

from enlarger.config import Settings
from enlarger.controllers.acceptance_controller import AcceptanceController
from enlarger.controllers.enlarge_workflow import EnlargementWorkflow
from enlarger.controllers.selection_controller import SelectionController
from enlarger.controllers.session_controller import SessionController
from enlarger.errors import HostError
from enlarger.services.enlarge_service import EnlargeClient
from enlarger.services.host_service import ContentDraft, ImageContent, SelectionEvent
from enlarger.services.image_service import ImageService
from enlarger.services.limits_service import LimitsService
from enlarger.services.reflection_service import ReflectionService


def make_png(width, height, color=(200, 30, 30, 255)):
    """Solid-colour RGBA PNG bytes."""
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class ManualScheduler:
    """Scheduler driven by the test: timers fire on advance(), background work on run_pending()."""

    def __init__(self):
        self.now = 0
        self._timers = {}
        self._next_handle = 0
        self.background = []

    def call_later(self, delay_ms, callback):
        self._next_handle += 1
        self._timers[self._next_handle] = (self.now + delay_ms, callback)
        return self._next_handle

    def cancel(self, handle):
        self._timers.pop(handle, None)

    @property
    def pending_timers(self):
        return len(self._timers)

    def advance(self, ms):
        target = self.now + ms
        while True:
            due = sorted((when, handle) for handle, (when, _) in self._timers.items() if when <= target)
            if not due:
                break
            when, handle = due[0]
            self.now = when
            _, callback = self._timers.pop(handle)
            callback()
        self.now = target

    def run_in_background(self, work, on_success, on_error):
        self.background.append((work, on_success, on_error))

    def run_pending(self):
        while self.background:
            work, on_success, on_error = self.background.pop(0)
            try:
                value = work()
            except Exception as exc:
                on_error(exc)
            else:
                on_success(value)


class FakeResponse:
    def __init__(self, status_code=200, content=b"", reason="OK"):
        self.status_code = status_code
        self.content = content
        self.reason = reason


class FakeHttpSession:
    """Stands in for requests.Session; records every POST."""

    def __init__(self):
        self.calls = []
        self.response = FakeResponse(200, make_png(20, 16))
        self.error = None

    def post(self, url, files=None, data=None, timeout=None):
        self.calls.append({"url": url, "files": files, "data": data, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


class FakeHost:
    """In-memory DesignHost that records uploads, insertions and saved drafts."""

    def __init__(self):
        self.images = {}
        self.uploads = []
        self.added = []
        self.saved = []
        self.fail_commit = False
        self._listeners = []

    def subscribe_selection(self, callback):
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    def read_image(self, ref):
        if ref not in self.images:
            raise HostError(f"Unknown asset: {ref}")
        return self.images[ref], "image/png"

    def upload_asset(self, upload):
        if self.fail_commit:
            raise HostError("asset store unavailable")
        self.uploads.append(upload)
        return f"new-ref-{len(self.uploads)}"

    def add_element(self, data_url):
        if self.fail_commit:
            raise HostError("asset store unavailable")
        self.added.append(data_url)
        return f"element-{len(self.added)}"

    def select(self, ref, element_id="element-1"):
        contents = [ImageContent(element_id=element_id, ref=ref)] if ref else []
        event = SelectionEvent(draft=ContentDraft(contents=contents, _saver=self.saved.append))
        for listener in list(self._listeners):
            listener(event)


@dataclass
class Harness:
    settings: Settings
    scheduler: ManualScheduler
    http: FakeHttpSession
    host: FakeHost
    image_service: ImageService
    limits: LimitsService
    reflection: ReflectionService
    session: SessionController
    selection: SelectionController
    workflow: EnlargementWorkflow
    acceptance: AcceptanceController

    def upload(self, width=1000, height=800):
        asset = self.image_service.decode_bytes(make_png(width, height), name="upload.png")
        self.session.upload(asset)
        return asset

    def select_from_host(self, ref="ref-original", width=640, height=480):
        self.host.images[ref] = make_png(width, height, color=(10, 120, 220, 255))
        self.host.select(ref)
        self.scheduler.run_pending()


def build_harness(settings):
    scheduler = ManualScheduler()
    http = FakeHttpSession()
    host = FakeHost()
    image_service = ImageService()
    limits = LimitsService(settings.max_pixel_budget, settings.max_file_bytes, settings.enlarge_factors)
    reflection = ReflectionService(image_service, canvas_size=settings.preview_size)
    session = SessionController(limits)
    client = EnlargeClient(settings.backend_host, timeout=settings.request_timeout, session=http)
    selection = SelectionController(session, host, image_service, scheduler)
    selection.start()
    return Harness(
        settings=settings,
        scheduler=scheduler,
        http=http,
        host=host,
        image_service=image_service,
        limits=limits,
        reflection=reflection,
        session=session,
        selection=selection,
        workflow=EnlargementWorkflow(session, client, scheduler, settings, limits, reflection, image_service),
        acceptance=AcceptanceController(session, host, scheduler),
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(backend_host="http://enlarge.test", design_dir=tmp_path / "design")


@pytest.fixture
def harness(settings):
    return build_harness(settings)


@pytest.fixture
def harness_factory(settings):
    """Harness with some settings overridden."""
    return lambda **changes: build_harness(replace(settings, **changes))


@pytest.fixture
def http():
    return FakeHttpSession()


@pytest.fixture
def response_factory():
    return FakeResponse


@pytest.fixture
def png_factory():
    return make_png


@pytest.fixture
def image_service():
    return ImageService()


@pytest.fixture
def reflection(image_service):
    return ReflectionService(image_service)


@pytest.fixture
def limits():
    return LimitsService(max_pixel_budget=2500 * 2500 * 2, max_file_bytes=5 * 1024 * 1024)


@pytest.fixture
def sample_asset(image_service):
    """48x36 opaque red image."""
    return image_service.decode_bytes(make_png(48, 36), name="sample.png")
