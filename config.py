"""Configuration module for Reminders MCP Service.

This module provides configuration settings using Pydantic Settings.
Environment variables can be used to override default values.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings for Reminders MCP Service.

    All settings can be overridden via environment variables.
    Example: export REMINDERS_BACKEND="memory"
    """

    # Native Store Configuration
    REMINDERS_BACKEND: str = "applescript"
    """Store backend: 'applescript' (macOS Reminders) or 'memory'"""

    OSASCRIPT_PATH: str = "osascript"
    """Path to the osascript binary used to drive Reminders.app"""

    OSASCRIPT_TIMEOUT: float = 30.0
    """Seconds to wait for a single osascript call before giving up"""

    MEMORY_LISTS: List[str] = ["Reminders"]
    """Lists created at startup when the memory backend is selected"""

    TIMEZONE: Optional[str] = None
    """IANA timezone for due dates without an offset. Default: system local time"""

    # API Server Configuration
    API_HOST: str = "0.0.0.0"
    """API server host address"""

    API_PORT: int = 8005
    """API server port"""

    # MCP Server Configuration
    MCP_HOST: str = "127.0.0.1"
    """MCP server host address"""

    MCP_PORT: int = 8006
    """MCP server port for SSE transport (separate from REST API)"""

    MCP_TRANSPORT: str = "stdio"
    """MCP transport type: 'stdio' for local, 'sse' for network access"""

    # General Configuration
    LOG_LEVEL: str = "INFO"
    """Log level for service loggers"""

    class Config:
        """Pydantic config"""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()
