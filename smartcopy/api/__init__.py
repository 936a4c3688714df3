"""
Dispatcher peer HTTP/WebSocket API
"""
