"""
Custodial vesting ledger integration layer
"""

from .admin import AdminAuthorization, AdminGuard, sign_admin_command
from .config import LedgerConfig, load_config
from .custodian import AssetCustodian, InMemoryCustodian
from .events import EventSink, LoggingEventSink, RecordingEventSink
from .reentrancy import ReentrancyGuard
from .vesting_ledger import VestingLedger

__all__ = [
    "AdminAuthorization",
    "AdminGuard",
    "sign_admin_command",
    "LedgerConfig",
    "load_config",
    "AssetCustodian",
    "InMemoryCustodian",
    "EventSink",
    "LoggingEventSink",
    "RecordingEventSink",
    "ReentrancyGuard",
    "VestingLedger",
]
