"""
==============================================================================
Workflow Package - Screen Controllers
==============================================================================

Controllers a UI (or the command line front end) drives with events.

Modules:
--------
- states: Packing screen states and ScanSession
- upload: PhotoUploadCoordinator
- controller: ScanWorkflowController
- home: HomeController (packing summary)
- auth: AuthFlow (login / register forms)

==============================================================================
"""

from .states import (
    Error,
    Idle,
    Loading,
    NoResult,
    RequestingPermission,
    ScanSession,
    Scanning,
    ScreenState,
    ShowResult,
    UploadOutcome,
)
from .upload import PhotoUploadCoordinator, UploadResult, UploadStage
from .controller import ScanWorkflowController
from .home import HomeController, HomeState
from .auth import AuthFlow, AuthOutcome

__all__ = [
    # States
    "Error",
    "Idle",
    "Loading",
    "NoResult",
    "RequestingPermission",
    "ScanSession",
    "Scanning",
    "ScreenState",
    "ShowResult",
    "UploadOutcome",
    # Upload
    "PhotoUploadCoordinator",
    "UploadResult",
    "UploadStage",
    # Controllers
    "ScanWorkflowController",
    "HomeController",
    "HomeState",
    "AuthFlow",
    "AuthOutcome",
]
