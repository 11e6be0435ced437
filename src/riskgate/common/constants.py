"""Centralized constants for RiskGate system configuration."""


# ===== RISK SCORING =====
class RiskConstants:
    HIGH_RISK_SCORE = 70
    MEDIUM_RISK_SCORE = 40

    # Score assumed when the score provider cannot be reached (maps to LOW)
    UNAVAILABLE_SCORE_DEFAULT = 0


# ===== VELOCITY =====
class VelocityConstants:
    WINDOW_SECONDS = 600  # 10 minutes, fixed window
    REDIS_KEY_PREFIX = "tx_count:"


# ===== BASELINE / EVENT LOG =====
class HistoryConstants:
    LOOKBACK_DAYS = 7
    PARTITION_FILENAME_PATTERN = "fds-{date}.json"
    DATE_FORMAT = "%Y-%m-%d"
    NO_HISTORY_BASELINE = 0.0
    WORKERS = 2
    TIMEOUT_SECONDS = 5.0


# ===== EVENT PUBLICATION =====
class PublisherConstants:
    QUEUE_GET_TIMEOUT = 0.5
    FLUSH_TIMEOUT_SECONDS = 5.0
    FLUSH_POLL_INTERVAL = 0.01


# ===== COLLABORATORS =====
class CollaboratorConstants:
    TIMEOUT_SECONDS = 2.0
    MAX_WORKERS = 4


# ===== TRANSFER DESTINATION =====
# Fixed for this core's scope; the caller renders them back to the user.
class TransferConstants:
    DESTINATION_LABEL = "Woori"
    DESTINATION_ACCOUNT_REF = "110-***-1234"


# ===== NETWORK CONTEXT =====
class NetworkConstants:
    UNKNOWN_COUNTRY = "UNKNOWN"
    FORWARDED_FOR_HEADER = "X-Forwarded-For"
    FALLBACK_PLACEHOLDER_IP = "203.0.113.200"
    COUNTRY_PLACEHOLDER_IPS = {
        "KR": "203.0.113.10",
        "US": "198.51.100.23",
        "JP": "192.0.2.44",
        "SG": "203.0.113.77",
        "GB": "198.51.100.88",
    }


# ===== USER-FACING MESSAGES =====
class Messages:
    LOGIN_SUCCESS = "Login successful."
    LOGIN_FAILURE = "Login failed."
    LOGIN_BLOCKED = "Your account has been blocked due to suspicious activity."
    LOGIN_MID_VERIFICATION = "Additional verification is required to continue."
    LOGOUT_SUCCESS = "Logout successful."
    LOGOUT_FAILURE = "Logout failed."
    TRANSFER_SUCCESS = "The transfer was processed successfully."
    TRANSFER_FAILURE = "The transfer could not be processed."
    TRANSFER_ACCOUNT_BLOCKED = "Your account has been blocked."
    TRANSFER_SUSPICIOUS = "Suspicious activity was detected. You will be logged out automatically."
    TRANSFER_VERIFICATION_REQUIRED = "A security check is required. Please complete additional verification."
