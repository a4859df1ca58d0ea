"""Constants for ad2usb."""

DOMAIN = "ad2usb"

CONF_PIN = "pin"
CONF_PARTITION_NAME = "partition_name"
CONF_RF_CONTACTS = "rf_contacts"
CONF_RF_MOTION_SENSORS = "rf_motion_sensors"
CONF_SERIAL = "serial"
CONF_LOOP = "loop"
CONF_NAME = "name"

DEFAULT_PORT = 10000
DEFAULT_PARTITION_NAME = "Security System"

MANUFACTURER = "Honeywell/Ademco"
MODEL = "AD2USB"
PARTITION_SERIAL_NUMBER = "DefaultSerial"

DATA_HUB = "hub"

RECONNECT_MAX_DELAY = 300
