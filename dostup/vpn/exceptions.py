"""Custom exceptions for VPN supervision."""


class VPNError(Exception):
    """Base exception for VPN-related errors."""
    pass


class ConfigurationError(VPNError):
    """Raised when the status bar configuration is invalid"""
    pass


class TransportFailure(VPNError):
    """Raised when the control-plane API cannot be reached or parsed"""
    pass


class ProcessQueryFailure(VPNError):
    """Raised when the OS process table cannot be queried"""
    pass


class AuthorizationCancelled(VPNError):
    """Raised when the user declines the administrator prompt"""
    pass


class AuthorizationFailed(VPNError):
    """Raised when privileged execution reports an error"""

    def __init__(self, message: str, code: int = 0):
        super().__init__(message)
        self.message = message
        self.code = code
