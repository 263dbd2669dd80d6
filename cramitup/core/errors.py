"""
Error taxonomy for mnemonic generation. Each error knows the HTTP status it
maps to and carries a message that is safe to show to the user.
"""


class MnemonicError(Exception):
    status_code = 500
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InputValidationError(MnemonicError):
    status_code = 400
    default_message = "Invalid input."


class SafetyBlockedError(MnemonicError):
    status_code = 400
    default_message = "Content was blocked by safety filters. Please try a different topic. 🛡️"


class UpstreamConfigError(MnemonicError):
    status_code = 500
    default_message = "Oops! API configuration issue. Please check the setup. 🔧"


class OutputValidationError(MnemonicError):
    status_code = 500
    default_message = "Generated content failed security validation. Please try again. 🔒"


class ResponseParseError(MnemonicError):
    status_code = 500
    default_message = "Failed to parse AI response. Please try again! 🔄"


class InvalidResponseStructureError(ResponseParseError):
    pass


class UpstreamError(MnemonicError):
    status_code = 500
    default_message = "Try again—Gemini is taking a nap! 😴"


class UpstreamTimeoutError(MnemonicError):
    status_code = 504
    default_message = "Request timeout - the AI took too long to respond. Please try again! ⏱️"


class RateLimitExceeded(MnemonicError):
    status_code = 429
    default_message = "Too many requests from this IP, please try again later! 😴"

    def __init__(self, message: str = None, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after
