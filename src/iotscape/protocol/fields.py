"""Protocol constants.

Keep these in one place to avoid stringly-typed message handling.
"""

# The one function name interpreted by the engine itself.
HEARTBEAT = "heartbeat"

# Request fields
ID = "id"
SERVICE = "service"
DEVICE = "device"
FUNCTION = "function"
PARAMS = "params"
CLIENT_ID = "clientId"

# Response fields
REQUEST = "request"
RESPONSE = "response"
EVENT = "event"
ERROR = "error"

# Event body fields
TYPE = "type"
ARGS = "args"

# Service definition fields
METHODS = "methods"
EVENTS = "events"
DOCUMENTATION = "documentation"
RETURNS = "returns"
OPTIONAL = "optional"
NAME = "name"
