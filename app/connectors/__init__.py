"""
app/connectors package marker.
"""

from app.connectors.decryption_connector import RemoteDecryptor

__all__ = [
    "RemoteDecryptor",
]
