"""
RegimePulse – Presentation Layer
=================================
FastAPI: endpoints REST (api/) y broadcast WebSocket (websocket/).
"""
