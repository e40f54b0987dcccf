"""
Protocol constants shared by the channel, handshake and relay.

Problem codes and environment markers are part of the wire contract with the
session broker and the SSH client; do not rename them.
"""

# Frame header: ASCII decimal length, newline terminated
MAX_SIZE_DIGITS = 8

# Command names
COMMAND_AUTHORIZE = "authorize"
COMMAND_INIT = "init"

# Challenge asking the caller for any cached authorization
CHALLENGE_ANY = "*"
CONVERSATION_TAG = "x-conversation"

# Problem codes reported in init messages
PROBLEM_INTERNAL_ERROR = "internal-error"
PROBLEM_AUTHENTICATION_FAILED = "authentication-failed"
PROBLEM_UNKNOWN_HOST = "unknown-host"

# auth-method-results reported when the backend rejects the token
DENIED_TOKEN_RESULTS = {"password": "not-tried", "token": "denied"}

# Environment markers read by the SSH client
ENV_ALLOW_UNKNOWN = "ALLOW_UNKNOWN"
ENV_SUPPORTS_HOST_KEY_PROMPT = "SUPPORTS_HOST_KEY_PROMPT"
ENV_AUTH_MESSAGE_TYPE = "AUTH_MESSAGE_TYPE"

MESSAGE_TYPE_PASSWORD = "password"
MESSAGE_TYPE_PRIVATE_KEY = "private-key"

# Descriptor the SSH client reads credential bytes from in legacy mode
CLIENT_AUTH_FD = 3
