"""
XStreamProv - Oracle XStream provisioning for the Snowflake connector
"""

__version__ = "0.1.0"

from .core import ProvisioningError, XStreamProvisioner

__all__ = ["ProvisioningError", "XStreamProvisioner"]
