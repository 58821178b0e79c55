"""WHOOP Health - WHOOP developer API access, trends and insights."""

__version__ = "1.2.0"

from .models import (
    Credential,
    Sleep,
    Recovery,
    Cycle,
    Workout,
    Profile,
    Body,
    Page,
    CombinedOutput,
    TrendReport,
    MetricTrend,
    Insight,
)
from .errors import (
    WhoopError,
    AuthRequired,
    AuthRefreshFailed,
    RateLimited,
    RemoteRequestFailed,
    ValidationError,
)
from .config import Config, ApiConfig, AuthConfig, DayConfig, get_config_dir
from .core import get_token_path, get_client, whoop_day, day_range
from .tokens import FileCredentialStore, TokenManager
from .oauth import OAuthClient
from .client import WhoopClient, ResourceKind, QueryFilters
from .normalize import pick_representative, group_by_day, with_cycle_offsets
from .analysis import compute_trends, generate_insights

__all__ = [
    # Models
    "Credential",
    "Sleep",
    "Recovery",
    "Cycle",
    "Workout",
    "Profile",
    "Body",
    "Page",
    "CombinedOutput",
    "TrendReport",
    "MetricTrend",
    "Insight",
    # Errors
    "WhoopError",
    "AuthRequired",
    "AuthRefreshFailed",
    "RateLimited",
    "RemoteRequestFailed",
    "ValidationError",
    # Configuration
    "Config",
    "ApiConfig",
    "AuthConfig",
    "DayConfig",
    "get_config_dir",
    # Core utilities
    "get_token_path",
    "get_client",
    "whoop_day",
    "day_range",
    # Auth
    "FileCredentialStore",
    "TokenManager",
    "OAuthClient",
    # API access
    "WhoopClient",
    "ResourceKind",
    "QueryFilters",
    # Analytics
    "pick_representative",
    "group_by_day",
    "with_cycle_offsets",
    "compute_trends",
    "generate_insights",
]
