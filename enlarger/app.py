from __future__ import annotations

from typing import Optional

import customtkinter as ctk

from enlarger.config import Settings
from enlarger.controllers.acceptance_controller import AcceptanceController
from enlarger.controllers.app_controller import AppController
from enlarger.controllers.enlarge_workflow import EnlargementWorkflow
from enlarger.controllers.selection_controller import SelectionController
from enlarger.controllers.session_controller import SessionController
from enlarger.services.enlarge_service import EnlargeClient
from enlarger.services.host_service import LocalDesignHost
from enlarger.services.image_service import ImageService
from enlarger.services.limits_service import LimitsService
from enlarger.services.reflection_service import ReflectionService
from enlarger.ui.bottom_bar import BottomBar
from enlarger.ui.image_viewer import ImageViewer
from enlarger.ui.sidebar import Sidebar
from enlarger.utils.scheduler import TkScheduler


class ImageEnlargerApp(ctk.CTk):
    def __init__(self, settings: Optional[Settings] = None) -> None:
        super().__init__()
        ctk.set_appearance_mode("system")
        ctk.set_default_color_theme("blue")

        self.title("Reflection Enlarger")
        self.minsize(900, 600)

        # root layout: left viewer, right sidebar
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=0)

        self._viewer = ImageViewer(self)
        self._viewer.grid(row=0, column=0, sticky="nsew", padx=(12, 6), pady=(12, 6))

        self._sidebar = Sidebar(self)
        self._sidebar.grid(row=0, column=1, sticky="ns", padx=(6, 12), pady=(12, 6))

        self._bottom = BottomBar(self)
        self._bottom.grid(row=1, column=0, columnspan=2, sticky="ew", padx=12, pady=(0, 12))

        settings = settings or Settings.from_env()
        scheduler = TkScheduler(self)
        image_service = ImageService()
        limits = LimitsService(settings.max_pixel_budget, settings.max_file_bytes, settings.enlarge_factors)
        reflection = ReflectionService(image_service, canvas_size=settings.preview_size)
        host = LocalDesignHost(settings.design_dir)
        session = SessionController(limits)
        client = EnlargeClient(settings.backend_host, timeout=settings.request_timeout)

        self._controller = AppController(
            viewer=self._viewer,
            sidebar=self._sidebar,
            bottom=self._bottom,
            settings=settings,
            host=host,
            image_service=image_service,
            limits=limits,
            reflection=reflection,
            session=session,
            selection=SelectionController(session, host, image_service, scheduler),
            workflow=EnlargementWorkflow(session, client, scheduler, settings, limits, reflection, image_service),
            acceptance=AcceptanceController(session, host, scheduler),
        )
        self._controller.bind_events()
