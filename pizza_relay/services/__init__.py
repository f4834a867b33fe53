"""
                        Services Module

Business logic behind the HTTP layer.

Services:
    - messaging: WhatsApp session (Mock for development, neonize for production)
    - qr_relay: Real-time push of login QR codes and session events
    - formatter: Order → WhatsApp message text
"""
