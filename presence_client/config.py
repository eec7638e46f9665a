"""Configuration constants for the presence client."""

# Server configuration
SERVER_HOST = "localhost"
SERVER_PORT = 8080
WS_URL = f"ws://{SERVER_HOST}:{SERVER_PORT}"

# View configuration
CANVAS_WIDTH = 800
CANVAS_HEIGHT = 600
TILE_SIZE = 32

# World
DEFAULT_LOCATION = "Town"

# Equipment slots shown when inspecting another player, in display order
EQUIPMENT_SLOTS = (
    "armor",
    "helmet",
    "amulet",
    "gloves",
    "ring",
    "weapon",
    "shield",
    "legs",
    "boots",
)

# Network
RECONNECT_DELAY_SECONDS = 3.0
