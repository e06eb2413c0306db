"""
Constants for severity classification and W3C field definitions.
"""

# =============================================================================
# Severity Classification
# =============================================================================

# Leading level tokens, checked in family order (first family wins)
ERROR_PREFIXES = ("ERROR", "ERR", "ERRO", "FATAL", "CRITICAL")
WARN_PREFIXES = ("WARN", "WARNING")
DEBUG_PREFIXES = ("DEBUG", "DBG")
TRACE_PREFIXES = ("TRACE",)
INFO_PREFIXES = ("INFO",)

# Short tokens only count when not followed by a letter or digit ("ERRand")
SHORT_LEVEL_TOKENS = ("ERR", "ERRO", "DBG")

# Generic keywords used when no explicit level marker is present
ERROR_KEYWORDS = ("exception", "fail", "failed", "timeout", "crash")
WARN_KEYWORDS = ("caution",)

# File extensions whose names often contain "error" without meaning one,
# e.g. "Processing step 'ResetError.sql'"
NON_LOG_FILE_EXTENSIONS = ("sql", "ps1", "bat", "cmd")

# Slow-path guard: Python's re module has no match timeout, so the
# classifier enforces a time budget between patterns and a length cap
DEFAULT_CLASSIFIER_TIME_BUDGET_MS = 500
DEFAULT_CLASSIFIER_MAX_LINE_LENGTH = 10_000

# =============================================================================
# W3C Extended Log Format (IIS)
# =============================================================================

# Maps W3C field names to (friendly header, description)
W3C_FIELD_METADATA = {
    "date": ("Date", "The date on which the activity occurred (UTC)."),
    "time": ("Time", "The time at which the activity occurred (UTC)."),
    "s-sitename": ("Service Name", "The Internet service name and instance number."),
    "s-computername": ("Server Name", "The name of the server that generated the entry."),
    "s-ip": ("Server IP", "The IP address of the server."),
    "cs-method": ("Method", "The requested verb, e.g. GET or POST."),
    "cs-uri-stem": ("URI Stem", "The target of the request, e.g. /default.aspx."),
    "cs-uri-query": ("URI Query", "The query string of the request, if any."),
    "s-port": ("Server Port", "The server port number configured for the service."),
    "cs-username": ("User Name", "The name of the authenticated user."),
    "c-ip": ("Client IP", "The IP address of the client that made the request."),
    "cs-version": ("Protocol Version", "The HTTP protocol version used by the client."),
    "cs(User-Agent)": ("User Agent", "The browser or client type used."),
    "cs(Cookie)": ("Cookie", "The content of the cookie sent or received."),
    "cs(Referer)": ("Referrer", "The site that referred the user to the current site."),
    "cs-host": ("Host", "The host header name, if any."),
    "sc-status": ("Status", "The HTTP status code."),
    "sc-substatus": ("Sub-status", "The sub-status error code."),
    "sc-win32-status": ("Win32 Status", "The Windows status code."),
    "sc-bytes": ("Bytes Sent", "The number of bytes that the server sent."),
    "cs-bytes": ("Bytes Received", "The number of bytes that the server received."),
    "time-taken": ("Time Taken", "The length of time the action took, in milliseconds."),
}

# Fields IIS writes when logging is left at its defaults
IIS_DEFAULT_FIELDS = [
    "date",
    "time",
    "s-ip",
    "cs-method",
    "cs-uri-stem",
    "cs-uri-query",
    "s-port",
    "cs-username",
    "c-ip",
    "cs(User-Agent)",
    "cs(Referer)",
    "sc-status",
    "sc-substatus",
    "sc-win32-status",
    "time-taken",
]

# Response-time buckets for IIS statistics (upper bounds in ms)
RESPONSE_TIME_BUCKETS = [
    ("< 200ms", 200),
    ("200-500ms", 500),
    ("500-1000ms", 1000),
    ("1000-2000ms", 2000),
    ("2000-5000ms", 5000),
    ("> 5000ms", None),
]

IIS_TOP_N = 10
