"""Sync engine for ftpdeploy - decides what to send and sends it."""

from .comparator import ExistingFilePolicy, SyncAction, SyncDecision, SyncPolicyEvaluator
from .config import SyncConfiguration
from .engine import DeployEngine
from .marker import RevisionMarkerManager
from .materializer import DirectoryMaterializer
from .operations import TransferExecutor
from .remote import RemoteDirectoryState, RemoteFileMetadata, RemoteStateProber
from .result import DeployResult, EntryFailure, RunStatus
from .scanner import DirectoryScanner, LocalEntry
from .selector import ChangeSelector
from .task import DeployTask, deploy

__all__ = [
    "DeployEngine",
    "DeployTask",
    "deploy",
    "SyncConfiguration",
    "ChangeSelector",
    "DirectoryScanner",
    "LocalEntry",
    "DirectoryMaterializer",
    "ExistingFilePolicy",
    "SyncAction",
    "SyncDecision",
    "SyncPolicyEvaluator",
    "TransferExecutor",
    "RevisionMarkerManager",
    "RemoteDirectoryState",
    "RemoteFileMetadata",
    "RemoteStateProber",
    "DeployResult",
    "EntryFailure",
    "RunStatus",
]
