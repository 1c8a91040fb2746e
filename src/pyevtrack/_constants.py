"""Internal constants shared across the library."""

API_BASE_URL = "https://emrssep490-haevbjfhdkbzhaaj.southeastasia-01.azurewebsites.net/api"
PROVIDER_BASE_URL = "https://flespi.io"
USER_AGENT = "pyevtrack/1"

# Console backend: tracking credential for one vehicle.
CREDENTIAL_ENDPOINT = "/Vehicle/tracking/{vehicle_id}"

# Telemetry provider: latest "position" telemetry parameter for one device.
TELEMETRY_POSITION_ENDPOINT = "/gw/devices/{device}/telemetry/position"
PROVIDER_AUTH_SCHEME = "FlespiToken"

MQTT_HOST = "mqtt.flespi.io"
MQTT_PORT = 443
MQTT_WS_PATH = "/"
MQTT_DEVICE_TOPIC = "flespi/message/gw/devices/{device}"

# Console cookie the BFF relays as a bearer token.
AUTH_COOKIE_NAME = "token"

# Timestamps above this are treated as epoch milliseconds.
MS_TIMESTAMP_THRESHOLD = 1e11
