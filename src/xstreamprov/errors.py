"""Domain errors for XStreamProv."""


class ProvisioningError(RuntimeError):
    """Raised when provisioning cannot start or continue safely."""
