"""
Walkmap Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Data sources
    TILE_DB_PATH: str = os.getenv("WALKMAP_TILE_DB", "walkable_tiles.db")
    # Optional Postgres DSN; when set the CLI reads tiles from Postgres instead of sqlite
    TILE_DSN: str | None = os.getenv("WALKMAP_TILE_DSN")
    TRANSPORT_DATA_PATH: str = os.getenv(
        "WALKMAP_TRANSPORT_DATA", "resources/rs3_transport_data.json"
    )
    SHEET_ID: str = os.getenv(
        "WALKMAP_SHEET_ID", "1gp1fePtecvpU1u-WhZk-uKm-wLiDcYB0LkmtaKOiPwo"
    )
    SHEET_TIMEOUT_SECONDS: float = float(os.getenv("WALKMAP_SHEET_TIMEOUT", "30"))

    # Region layout
    REGION_WIDTH: int = int(os.getenv("WALKMAP_REGION_WIDTH", "64"))
    REGION_HEIGHT: int = int(os.getenv("WALKMAP_REGION_HEIGHT", "64"))
    REGION_STRIDE: int = 256

    # World extent (inclusive min, exclusive max)
    MIN_X: int = int(os.getenv("WALKMAP_MIN_X", "0"))
    MAX_X: int = int(os.getenv("WALKMAP_MAX_X", "6400"))
    MIN_Y: int = int(os.getenv("WALKMAP_MIN_Y", "0"))
    MAX_Y: int = int(os.getenv("WALKMAP_MAX_Y", "12800"))
    MAX_PLANE: int = int(os.getenv("WALKMAP_MAX_PLANE", "3"))

    # Tile budget
    MIN_TILE_LIMIT: int = 10_000
    DEFAULT_TILE_LIMIT: int = int(os.getenv("WALKMAP_TILE_LIMIT", "100000"))
    MAX_TILE_LIMIT: int = 500_000
    MIN_ZOOM_FOR_TILES: int = -1

    # Pathfinding
    PATH_MAX_ITERATIONS: int = int(os.getenv("WALKMAP_PATH_MAX_ITERATIONS", "50000"))
    PATH_MARGIN: int = int(os.getenv("WALKMAP_PATH_MARGIN", "100"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Project Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if values are inconsistent."""
        if cls.REGION_WIDTH <= 0 or cls.REGION_HEIGHT <= 0:
            raise ValueError("WALKMAP_REGION_WIDTH and WALKMAP_REGION_HEIGHT must be positive")

        if cls.MIN_X >= cls.MAX_X or cls.MIN_Y >= cls.MAX_Y:
            raise ValueError(
                "World extent is empty; check WALKMAP_MIN_X/MAX_X and WALKMAP_MIN_Y/MAX_Y"
            )

        # region_id = region_x * stride + region_y, so region_y must stay below the stride
        regions_high = -(-(cls.MAX_Y - min(cls.MIN_Y, 0)) // cls.REGION_HEIGHT)
        if regions_high > cls.REGION_STRIDE:
            raise ValueError(
                f"World is {regions_high} regions tall; region ids collide beyond "
                f"{cls.REGION_STRIDE}. Increase WALKMAP_REGION_HEIGHT or shrink the extent."
            )

        if not cls.MIN_TILE_LIMIT <= cls.DEFAULT_TILE_LIMIT <= cls.MAX_TILE_LIMIT:
            raise ValueError(
                f"WALKMAP_TILE_LIMIT must be between {cls.MIN_TILE_LIMIT} and {cls.MAX_TILE_LIMIT}"
            )

        if cls.PATH_MAX_ITERATIONS <= 0:
            raise ValueError("WALKMAP_PATH_MAX_ITERATIONS must be positive")

        if cls.PATH_MARGIN < 0:
            raise ValueError("WALKMAP_PATH_MARGIN cannot be negative")

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Walkmap Configuration:",
            f"  Tile DB: {cls.TILE_DSN or cls.TILE_DB_PATH}",
            f"  Transport data: {cls.TRANSPORT_DATA_PATH}",
            f"  Region: {cls.REGION_WIDTH}x{cls.REGION_HEIGHT}",
            f"  World: x[{cls.MIN_X}, {cls.MAX_X}) y[{cls.MIN_Y}, {cls.MAX_Y}) planes 0-{cls.MAX_PLANE}",
            f"  Tile limit: {cls.DEFAULT_TILE_LIMIT} ({cls.MIN_TILE_LIMIT}-{cls.MAX_TILE_LIMIT})",
            f"  Path cap: {cls.PATH_MAX_ITERATIONS} iterations, margin {cls.PATH_MARGIN}",
        ]
        return "\n".join(lines)
