# backend/roomchat/core/constants.py
"""
Application-wide constants for roomchat.
"""

API_TITLE = "roomchat API"
API_DESCRIPTION = "Single-room chat backend with REST CRUD and a realtime push channel"
API_VERSION = "1.0.0"

DEFAULT_DEV_ORIGINS = ("http://localhost:3000",)

# Message content limits (applied after trimming)
MESSAGE_MAX_LENGTH = 500

# Push channel
REALTIME_PATH = "/ws"
REALTIME_TOKEN_QUERY_PARAM = "token"

# Error messages
ERROR_NOT_AUTHORIZED = "Not authorized"
ERROR_MESSAGE_NOT_FOUND = "Message not found"
ERROR_INVALID_CREDENTIALS = "Invalid credentials"
