"""
                Pizza Order Relay

Accepts pizza orders over HTTP and forwards them as WhatsApp messages
through a linked WhatsApp Web session, relaying the login QR code to
the operator page in real time.
"""

__version__ = "1.0.0"
