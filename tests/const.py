"""Constants for AD2USB tests."""

from typing import Any

MOCK_CONFIG: dict[str, Any] = {
    "host": "10.0.0.5",
    "port": 10000,
    "pin": "1234",
    "partition_name": "Security System",
    "rf_contacts": [{"serial": "1234567", "loop": 2, "name": "Front Door"}],
    "rf_motion_sensors": [{"serial": "7654321", "loop": 1, "name": "Hallway"}],
}
